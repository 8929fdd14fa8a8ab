"""Composite battery and solar-harvesting energy model for discrete-event simulation."""

__version__ = "0.1.0"
