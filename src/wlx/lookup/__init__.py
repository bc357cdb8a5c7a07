"""Dictionary lookup."""
