"""Audio corpus management."""
