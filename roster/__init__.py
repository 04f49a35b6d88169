"""Roster — an administered registry of participant profiles."""

__version__ = "0.1.0"
