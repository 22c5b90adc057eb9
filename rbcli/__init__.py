"""Release bundle lifecycle command-line tool."""

__version__ = "0.3.0"
