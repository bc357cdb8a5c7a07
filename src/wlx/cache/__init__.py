"""On-disk dataset cache."""
