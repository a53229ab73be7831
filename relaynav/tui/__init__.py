"""TUI (Terminal User Interface) module for relaynav.

Key-driven navigation over relay countries and cities.
"""
from .navigator import Navigator
from .router import Router
from .state import InputMode, ListContext, SearchFilter, SelectionModel, View

__all__ = [
    "InputMode",
    "ListContext",
    "Navigator",
    "Router",
    "SearchFilter",
    "SelectionModel",
    "View",
]
