"""Utility modules: viewer geometry, pixel transforms, formatting and console output."""
