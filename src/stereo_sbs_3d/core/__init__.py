"""Core constants, data model and error types."""
