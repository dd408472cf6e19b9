"""Geometry of a stack of slices, and the check for a regularly sampled volume."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np

from medgeom.core.slice import SliceGeometry
from medgeom.core.types import SPACING_TOLERANCE, as_vector3, dominant_axis

logger = logging.getLogger(__name__)

_NAN_OFFSETS = (math.nan, math.nan, math.nan)


@dataclass(frozen=True, eq=False)
class VolumeGeometry:
    """Ordered slice geometries; index is the frame number.

    An unvalidated volume is never treated as regularly sampled. Call
    :meth:`validate` to obtain a :class:`ValidatedVolumeGeometry`.
    """

    slices: tuple[SliceGeometry, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "slices", tuple(self.slices))

    @property
    def number_of_slices(self) -> int:
        return len(self.slices)

    @property
    def is_volume(self) -> bool:
        return False

    def __len__(self) -> int:
        return len(self.slices)

    def __iter__(self) -> Iterator[SliceGeometry]:
        return iter(self.slices)

    def get_geometry_of_slice(self, frame: int) -> SliceGeometry | None:
        if 0 <= frame < len(self.slices):
            return self.slices[frame]
        return None

    def lookup_image_coordinate(self, column: float, row: float, frame: int) -> np.ndarray | None:
        """3D position of a pixel offset in one frame, None if no such frame."""
        geometry = self.get_geometry_of_slice(frame)
        if geometry is None:
            return None
        return geometry.lookup_image_coordinate(column, row)

    def lookup_image_offsets(
        self, position: Sequence[float] | np.ndarray,
    ) -> tuple[float, float, float]:
        """(column, row, frame) of a 3D position; NaN unless regularly sampled."""
        logger.warning(
            "Cannot look up image offsets from a 3D position: "
            "volume is not regularly sampled along the frame dimension"
        )
        return _NAN_OFFSETS

    def distances_along_normal(self) -> np.ndarray:
        return np.array([s.distance_along_normal() for s in self.slices], dtype=np.float64)

    def find_closest_slice_in_same_plane(self, other: SliceGeometry) -> int:
        """Frame whose distance along the normal is nearest to ``other``'s.

        The lowest frame wins ties; -1 if there are no slices.
        """
        target = other.distance_along_normal()
        found = -1
        closest = math.inf
        for frame, geometry in enumerate(self.slices):
            distance = abs(geometry.distance_along_normal() - target)
            if distance < closest:
                closest = distance
                found = frame
        return found

    def row_orientation(self, frame: int, quadruped: bool = False) -> str:
        geometry = self.get_geometry_of_slice(frame)
        return geometry.row_orientation(quadruped) if geometry is not None else ""

    def column_orientation(self, frame: int, quadruped: bool = False) -> str:
        geometry = self.get_geometry_of_slice(frame)
        return geometry.column_orientation(quadruped) if geometry is not None else ""

    def validate(self) -> ValidatedVolumeGeometry:
        """Check whether the slices form a regularly sampled volume.

        The slices must all be parallel and evenly spaced along the normal.
        When they are, the returned volume's slices carry the absolute
        interval as their spacing between slices.
        """
        return ValidatedVolumeGeometry(self.slices)

    def __str__(self) -> str:
        return "\n".join(f"[{frame}] {geometry}" for frame, geometry in enumerate(self.slices))


def _check_regular_sampling(slices: Sequence[SliceGeometry]) -> tuple[bool, float | None]:
    """(are_parallel, spacing) of a slice stack; spacing is None unless evenly spaced."""
    if len(slices) < 2:
        return True, None

    if not SliceGeometry.are_parallel(slices[0], slices[1]):
        logger.debug("Frames 0 and 1 are not parallel")
        return False, None

    last_distance = slices[1].distance_along_normal()
    want_interval = last_distance - slices[0].distance_along_normal()
    for frame in range(2, len(slices)):
        current = slices[frame]
        if not SliceGeometry.are_parallel(slices[frame - 1], current):
            logger.debug(f"Frame {frame} is not parallel to frame {frame - 1}")
            return False, None
        distance = current.distance_along_normal()
        interval = distance - last_distance
        if abs(interval - want_interval) >= SPACING_TOLERANCE:
            logger.debug(
                f"Frame {frame} interval {interval:g} differs from {want_interval:g}"
            )
            return True, None
        last_distance = distance

    spacing = abs(want_interval)
    logger.debug(f"Regularly sampled volume of {len(slices)} frames, spacing {spacing:g}")
    return True, spacing


@dataclass(frozen=True, eq=False)
class ValidatedVolumeGeometry(VolumeGeometry):
    """A volume whose regular-sampling check has been done.

    The check runs on construction; the flags below are derived from the
    slices and cannot be passed in.

    Attributes:
        are_parallel: All adjacent slices are parallel (True for < 2 slices).
        is_volume: Parallel and evenly spaced, so 3D lookups are possible.
        slice_spacing: Absolute spacing between slices when ``is_volume``.
    """

    are_parallel: bool = field(init=False, default=True)
    is_volume: bool = field(init=False, default=False)
    slice_spacing: float | None = field(init=False, default=None)
    _axes: tuple[int, int, int] | None = field(init=False, default=None, repr=False)
    _inverse: np.ndarray | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        set_ = object.__setattr__
        are_parallel, spacing = _check_regular_sampling(self.slices)
        set_(self, "are_parallel", are_parallel)
        if spacing is None:
            return
        set_(self, "slices", tuple(s.with_slice_spacing(spacing) for s in self.slices))
        set_(self, "is_volume", True)
        set_(self, "slice_spacing", spacing)

        first = self.slices[0]
        r = dominant_axis(first.row)
        c = dominant_axis(first.column)
        n = dominant_axis(first.normal)
        logger.debug(f"Dominant axes row={r} column={c} normal={n}")
        rows = [r, c, n]
        matrix = np.column_stack((first.row[rows], first.column[rows], first.normal[rows]))
        try:
            inverse = np.linalg.inv(matrix)
        except np.linalg.LinAlgError:
            logger.debug("Volume orientation matrix is singular")
            inverse = np.full((3, 3), np.nan)
        inverse.flags.writeable = False
        set_(self, "_axes", (r, c, n))
        set_(self, "_inverse", inverse)

    def validate(self) -> ValidatedVolumeGeometry:
        return self

    def lookup_image_offsets(
        self, position: Sequence[float] | np.ndarray,
    ) -> tuple[float, float, float]:
        if not self.is_volume:
            return super().lookup_image_offsets(position)
        location = as_vector3(position, "position")
        first = self.slices[0]
        rows = list(self._axes)
        with np.errstate(divide="ignore", invalid="ignore"):
            offsets = self._inverse @ (location[rows] - first.tlhc[rows])
            offsets = offsets / first.voxel_spacing
        return float(offsets[0] + 0.5), float(offsets[1] + 0.5), float(offsets[2])


def from_slices(slices: Iterable[SliceGeometry]) -> ValidatedVolumeGeometry:
    """Build a volume from slice geometries and validate it."""
    return VolumeGeometry(tuple(slices)).validate()
