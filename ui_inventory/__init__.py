"""Component and style inventory derived from captured UI elements."""

__version__ = "0.1.0"
