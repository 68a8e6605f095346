"""Application layer: services, DTOs and ports. No infrastructure imports."""
