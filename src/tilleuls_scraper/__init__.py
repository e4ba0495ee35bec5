"""Retrieve and decode the weekly order form of the Ferme des Tilleuls."""

__version__ = "0.1.0"
