"""Hierarchical role and tenant entitlement resolution engine."""

__version__ = "1.0.0"
