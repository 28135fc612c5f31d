"""Deterministic wallet scoring heuristics."""
