"""Domain layer: entities, typed errors and collection services."""
