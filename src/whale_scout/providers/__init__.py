"""Upstream data providers (Helius RPC and public SOL price feeds)."""
