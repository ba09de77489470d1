"""Redstone circuit graph optimiser and tick simulator."""

__version__ = "0.1.0"