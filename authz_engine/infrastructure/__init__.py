"""Infrastructure: SQLAlchemy persistence and Redis-backed cache invalidation."""
