"""Textual front end for gitme."""

from .app import GitmeApp

__all__ = ["GitmeApp"]
