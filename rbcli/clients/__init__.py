"""REST clients for the artifact repository and lifecycle services."""
