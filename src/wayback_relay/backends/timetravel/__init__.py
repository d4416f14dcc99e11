"""Time Travel (memento aggregator) lookup backend package."""
