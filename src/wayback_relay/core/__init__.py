"""Core types, exceptions and logging shared by every Wayback Relay component."""
