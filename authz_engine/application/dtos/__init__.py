"""Application DTOs (read-models passed between layers; no ORM types)."""
