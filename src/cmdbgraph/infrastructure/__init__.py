"""Infrastructure layer: database, store adapter, change log, traversal.

This layer depends on stdlib, the domain layer, and SQLAlchemy.
It must never import from services, commands, or output.
"""
