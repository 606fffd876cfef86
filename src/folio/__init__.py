"""Folio: page hierarchy and split-pane tab layout for a personal wiki."""

__version__ = "0.1.0"

__all__ = ["__version__"]
