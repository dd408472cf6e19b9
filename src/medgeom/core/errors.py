"""Exceptions raised by medgeom.

Degenerate numeric input (zero-length direction cosines, rows and columns
sharing a dominant axis) is not reported through these: it propagates as
NaN or inf in the returned coordinates.
"""

from __future__ import annotations


class GeometryError(Exception):
    """Base exception for all geometry errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class LocalizerNotConfiguredError(GeometryError):
    """Raised when a poster is used before its localizer geometry is set."""

    def __init__(self, poster_name: str) -> None:
        self.poster_name = poster_name
        super().__init__(
            f"Localizer geometry has not been set on {poster_name}; "
            "call set_localizer_geometry() first"
        )


class PosterConstructionError(GeometryError):
    """Raised when the factory cannot instantiate a localizer poster."""

    def __init__(self, message: str, *, project: bool, plane: bool) -> None:
        self.project = project
        self.plane = plane
        super().__init__(f"{message} (project={project}, plane={plane})")
