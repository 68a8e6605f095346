"""Engine configuration and constants."""
