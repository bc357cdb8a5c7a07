"""Remote source registry."""
