"""Index and JSON output writers."""
