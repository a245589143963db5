"""Document store backed by SQLAlchemy async models with JSON columns."""
