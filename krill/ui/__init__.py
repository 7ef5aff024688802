"""Curses front end for krill."""
from krill.ui import input, screen

__all__ = ["input", "screen"]
