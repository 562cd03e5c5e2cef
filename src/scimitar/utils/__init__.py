"""Shared helpers for scimitar."""
