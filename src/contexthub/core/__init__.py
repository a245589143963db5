"""Core configuration, logging and query utilities for ContextHub."""
