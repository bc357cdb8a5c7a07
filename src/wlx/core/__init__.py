"""Core types, config and load coordination."""
