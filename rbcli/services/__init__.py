"""Service layer: business logic behind the CLI commands."""
