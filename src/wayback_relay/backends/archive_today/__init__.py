"""archive.today backend package."""
