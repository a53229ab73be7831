"""relaynav: terminal navigator for relay locations."""

__version__ = "0.1.0"
