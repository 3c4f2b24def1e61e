"""Catalog maintenance passes: rebuild, purge, audit, key prefixes, custom-field cleanup."""
