"""Domain models and constants."""
