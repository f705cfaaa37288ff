"""Paginated, reverse-chronological browsing history visits."""

__version__ = "0.1.0"
