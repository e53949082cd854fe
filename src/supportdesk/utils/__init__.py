"""Shared helpers: logging, errors, caching, clocks and validation."""
