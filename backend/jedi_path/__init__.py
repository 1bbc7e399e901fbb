"""Jedi Path Quiz backend."""

__version__ = "0.1.0"
