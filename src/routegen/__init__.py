"""Batch route generation against an external Route Finder."""

__version__ = "0.1.0"
