"""fieldctl — legacy field attribute and validation engine."""

__version__ = "0.1.0"
