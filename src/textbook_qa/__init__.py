"""Grounded question answering over textbooks."""

__version__ = "0.1.0"
