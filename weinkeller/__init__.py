"""Weinkeller - wine cellar inventory manager."""

__version__ = "0.1.0"
