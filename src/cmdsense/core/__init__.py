"""Core infrastructure shared across cmdsense."""
