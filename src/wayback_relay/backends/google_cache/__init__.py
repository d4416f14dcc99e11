"""Google cache lookup backend package."""
