"""Wayuu-Spanish lexicon engine: dataset acquisition, caching and lookup."""

__version__ = "0.1.0"
