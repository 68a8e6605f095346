"""Cross-cutting helpers (logging, time, identifiers, enums)."""
