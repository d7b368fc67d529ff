"""Tutor/course semantic matching and notification fan-out engine."""

__version__ = "0.1.0"
