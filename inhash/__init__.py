"""INHASH account-linking core."""

__version__ = "0.1.0"
