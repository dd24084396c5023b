"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: DB session, the catalog repository, ORM operations
- Redis: caching with TTL policies

No business logic in stores - that belongs in services.
"""
