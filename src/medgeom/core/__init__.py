"""Slice and volume geometry in the LPH+ patient coordinate space."""

from medgeom.core.errors import (
    GeometryError,
    LocalizerNotConfiguredError,
    PosterConstructionError,
)
from medgeom.core.slice import SliceGeometry, orientation_letters
from medgeom.core.types import Outline, PosterConfig
from medgeom.core.volume import ValidatedVolumeGeometry, VolumeGeometry, from_slices

__all__ = [
    "GeometryError",
    "LocalizerNotConfiguredError",
    "Outline",
    "PosterConfig",
    "PosterConstructionError",
    "SliceGeometry",
    "ValidatedVolumeGeometry",
    "VolumeGeometry",
    "from_slices",
    "orientation_letters",
]
