"""Core data types for medgeom."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from medgeom.core.errors import GeometryError

Vector3 = np.ndarray  # float64 [3], used for both points and directions

# Absolute tolerances, in mm unless noted
PLANE_TOLERANCE = 0.001
PARALLEL_TOLERANCE = 0.001  # per component of a unit normal
SPACING_TOLERANCE = 0.001
ORIENTATION_THRESHOLD = 0.0001  # direction cosine magnitude


def as_vector3(values: Sequence[float] | np.ndarray, name: str = "vector") -> np.ndarray:
    """Return a read-only float64 copy of a 3-component sequence."""
    array = np.array(values, dtype=np.float64).reshape(-1)
    if array.shape != (3,):
        raise GeometryError(f"{name} must have exactly 3 components, got {array.shape[0]}")
    array.flags.writeable = False
    return array


def dominant_axis(vector: np.ndarray) -> int:
    """Index of the component with the largest magnitude (first one wins ties)."""
    return int(np.argmax(np.abs(vector)))


@dataclass
class Outline:
    """A shape to draw on the localizer image, in localizer pixel offsets.

    ``points`` is float64 [K, 2]: x runs along the localizer row direction
    (columns), y along the column direction (rows), origin at the outer
    corner of the top left pixel.
    """

    points: np.ndarray
    closed: bool = False

    def __len__(self) -> int:
        return len(self.points)

    def segments(self) -> list[tuple[tuple[float, float], tuple[float, float]]]:
        """Line segments joining consecutive points, plus the closing one if closed."""
        pts = [(float(x), float(y)) for x, y in self.points]
        segments = list(zip(pts[:-1], pts[1:]))
        if self.closed and len(pts) > 2:
            segments.append((pts[-1], pts[0]))
        return segments


@dataclass
class PosterConfig:
    """Configuration for posting a source geometry (from CLI flags)."""

    project: bool = False
    plane: bool = True
    quadruped: bool = False
    verbose: bool = False
