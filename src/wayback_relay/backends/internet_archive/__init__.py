"""Internet Archive (Wayback Machine) backend package."""
