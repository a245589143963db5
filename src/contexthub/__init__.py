"""ContextHub Collections - dynamic collection schemas and query engine.

Tenants define typed collection schemas, store entries that are validated,
uniquified and indexed against them, and query entries through a small
filter/sort/project DSL with relation dereferencing.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
