"""Valuecheck - data values validation engine."""

__version__ = "0.1.0"
