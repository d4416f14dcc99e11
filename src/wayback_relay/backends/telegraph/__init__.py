"""Telegraph backend package."""
