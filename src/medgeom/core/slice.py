"""Spatial geometry of a single cross-sectional image slice.

Positions and directions are in the DICOM patient coordinate space, LPH+:
x increases toward the patient's left, y toward posterior, z toward head.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

import numpy as np

from medgeom.core.errors import GeometryError
from medgeom.core.types import (
    ORIENTATION_THRESHOLD,
    PARALLEL_TOLERANCE,
    PLANE_TOLERANCE,
    as_vector3,
    dominant_axis,
)

logger = logging.getLogger(__name__)

# (negative, positive) label per axis
_BIPED_LABELS = (("R", "L"), ("A", "P"), ("F", "H"))
_QUADRUPED_LABELS = (("Rt", "Le"), ("V", "D"), ("Cd", "Cr"))


def orientation_letters(vector: Sequence[float] | np.ndarray, quadruped: bool = False) -> str:
    """Anatomical orientation code of a direction, e.g. "L", "RA", "LPH".

    Axes are taken in decreasing order of magnitude (x before y before z on
    ties) and each axis above the threshold contributes one label.
    """
    v = as_vector3(vector, "orientation")
    labels = _QUADRUPED_LABELS if quadruped else _BIPED_LABELS
    magnitudes = np.abs(v)
    letters: list[str] = []
    for axis in sorted(range(3), key=lambda i: -magnitudes[i]):
        if not magnitudes[axis] > ORIENTATION_THRESHOLD:
            break
        negative, positive = labels[axis]
        letters.append(negative if v[axis] < 0 else positive)
    return "".join(letters)


@dataclass(frozen=True, eq=False)
class SliceGeometry:
    """Pose and sampling of one image slice.

    Attributes:
        row: Direction cosines of the image rows (unit vector).
        column: Direction cosines of the image columns (unit vector).
        tlhc: Position of the outer top left hand corner of pixel [0, 0].
        voxel_spacing: Spacing between centers of adjacent rows, adjacent
            columns and (once part of a validated volume) adjacent slices.
        slice_thickness: Nominal slice thickness, independent of spacing.
        dimensions: (rows, columns, 1).
        normal: normalize(row x column) with its z component negated.
        row_axis: Dominant component index of ``row``.
        column_axis: Dominant component index of ``column``.
    """

    row: np.ndarray
    column: np.ndarray
    tlhc: np.ndarray
    voxel_spacing: np.ndarray
    slice_thickness: float
    dimensions: np.ndarray
    normal: np.ndarray = field(init=False, repr=False)
    row_axis: int = field(init=False, repr=False)
    column_axis: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        set_ = object.__setattr__
        set_(self, "row", as_vector3(self.row, "row"))
        set_(self, "column", as_vector3(self.column, "column"))
        set_(self, "tlhc", as_vector3(self.tlhc, "tlhc"))
        set_(self, "voxel_spacing", as_vector3(self.voxel_spacing, "voxel_spacing"))
        set_(self, "dimensions", as_vector3(self.dimensions, "dimensions"))
        set_(self, "slice_thickness", float(self.slice_thickness))

        cross = np.cross(self.row, self.column)
        with np.errstate(divide="ignore", invalid="ignore"):
            normal = cross / np.linalg.norm(cross)
        normal[2] = -normal[2]
        normal.flags.writeable = False
        set_(self, "normal", normal)
        set_(self, "row_axis", dominant_axis(self.row))
        set_(self, "column_axis", dominant_axis(self.column))

    @classmethod
    def from_image_plane(
        cls,
        orientation: Sequence[float],
        position: Sequence[float],
        pixel_spacing: Sequence[float],
        slice_thickness: float,
        rows: int,
        columns: int,
        spacing_between_slices: float = 0.0,
    ) -> SliceGeometry:
        """Build from Image Plane values: six direction cosines, position and spacing.

        ``pixel_spacing`` is (row spacing, column spacing) as in PixelSpacing.
        """
        if len(orientation) != 6:
            raise GeometryError(f"Expected 6 direction cosines, got {len(orientation)}")
        if len(pixel_spacing) != 2:
            raise GeometryError(f"Expected 2 pixel spacing values, got {len(pixel_spacing)}")
        return cls(
            row=orientation[:3],
            column=orientation[3:],
            tlhc=position,
            voxel_spacing=(pixel_spacing[0], pixel_spacing[1], spacing_between_slices),
            slice_thickness=slice_thickness,
            dimensions=(rows, columns, 1),
        )

    @property
    def rows(self) -> int:
        return int(self.dimensions[0])

    @property
    def columns(self) -> int:
        return int(self.dimensions[1])

    def with_slice_spacing(self, spacing: float) -> SliceGeometry:
        """Copy of this geometry with the spacing between slices replaced."""
        voxel_spacing = (self.voxel_spacing[0], self.voxel_spacing[1], spacing)
        return replace(self, voxel_spacing=voxel_spacing)

    def lookup_image_coordinate(self, column: float, row: float) -> np.ndarray:
        """3D position of a (column, row) pixel offset.

        Integer offsets are pixel centers; the TLHC is the outer corner of
        pixel [0, 0], hence the half pixel shift.
        """
        row = row - 0.5
        column = column - 0.5
        row_spacing, column_spacing = self.voxel_spacing[0], self.voxel_spacing[1]
        return self.tlhc + row * self.column * row_spacing + column * self.row * column_spacing

    def lookup_image_offsets(self, position: Sequence[float] | np.ndarray) -> tuple[float, float]:
        """(column, row) pixel offsets of a 3D position lying in this slice."""
        location = as_vector3(position, "position")
        r, c = self.row_axis, self.column_axis
        if r == c:
            logger.debug(f"Row and column share dominant axis {r}; offsets are undefined")
        row, column, tlhc = self.row, self.column, self.tlhc
        with np.errstate(divide="ignore", invalid="ignore"):
            scaled_row = (
                (location[r] - tlhc[r]) * row[c] / row[r] - location[c] + tlhc[c]
            ) / (column[r] / row[r] * row[c] - column[c])
            scaled_column = (location[r] - tlhc[r] - scaled_row * column[r]) / row[r]
            row_offset = scaled_row / self.voxel_spacing[0]
            column_offset = scaled_column / self.voxel_spacing[1]
        return float(column_offset + 0.5), float(row_offset + 0.5)

    def distance_along_normal(self, point: Sequence[float] | np.ndarray | None = None) -> float:
        """Signed distance of ``point`` (default: the TLHC) along the normal."""
        location = self.tlhc if point is None else as_vector3(point, "point")
        return float(np.dot(self.normal, location))

    def is_point_in_slice_plane(self, point: Sequence[float] | np.ndarray) -> bool:
        """Whether ``point`` lies in the plane of this slice (thickness ignored)."""
        delta = abs(self.distance_along_normal(point) - self.distance_along_normal())
        return delta < PLANE_TOLERANCE

    @staticmethod
    def are_parallel(first: SliceGeometry | None, second: SliceGeometry | None) -> bool:
        if first is None or second is None:
            return False
        return bool(np.all(np.abs(first.normal - second.normal) < PARALLEL_TOLERANCE))

    def row_orientation(self, quadruped: bool = False) -> str:
        return orientation_letters(self.row, quadruped)

    def column_orientation(self, quadruped: bool = False) -> str:
        return orientation_letters(self.column, quadruped)

    def __str__(self) -> str:
        def fmt(values: np.ndarray) -> str:
            return "(" + ",".join(f"{v:g}" for v in values) + ")"

        return (
            f"Row {fmt(self.row)} Column {fmt(self.column)} Normal {fmt(self.normal)} "
            f"TLHC {fmt(self.tlhc)} Spacing {fmt(self.voxel_spacing)} "
            f"Thickness ({self.slice_thickness:g}) Dimensions {fmt(self.dimensions)}"
        )
