"""Script registry service: versioned script storage behind a REST API."""

__version__ = "0.1.0"
