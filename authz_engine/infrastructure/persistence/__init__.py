"""Persistence: engine, ORM models, repositories, unit of work."""
