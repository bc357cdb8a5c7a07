"""Remote dataset fetching."""
