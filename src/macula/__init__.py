"""Macula node tooling."""

__version__ = "0.1.0"
