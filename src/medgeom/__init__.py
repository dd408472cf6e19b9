"""Slice and volume geometry, and localizer posting, for cross-sectional images."""

__version__ = "0.1.0"
