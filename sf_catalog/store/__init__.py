"""Per-object document store."""
