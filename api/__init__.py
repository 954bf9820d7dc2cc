"""Miles Sales Engine REST API."""

__version__ = "0.1.0"
