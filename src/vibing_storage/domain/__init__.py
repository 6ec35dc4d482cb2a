"""Domain layer: vibe catalog, track aggregates and library file services."""
