"""Infrastructure layer: persistence for the collection engine."""
