"""Collaborators that discover and fetch object definitions."""
