"""Framework layer: configuration, startup checks, shared types."""
