"""Core infrastructure: configuration, errors, auth, persistence wiring."""
