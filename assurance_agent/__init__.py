"""Assurance debugging assistant."""
__version__ = "1.0.0"
