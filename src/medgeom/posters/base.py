"""Abstract base class for localizer posters.

A poster is configured once with the geometry of a localizer image and then
asked, per source geometry, for the outlines to draw on that localizer.

Localizer space has its origin at the localizer TLHC, with the localizer row
direction as +X, column direction as +Y and normal as +Z; source points with
Z == 0 lie in the localizer plane.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

import numpy as np

from medgeom.core.errors import LocalizerNotConfiguredError
from medgeom.core.slice import SliceGeometry
from medgeom.core.types import Outline, as_vector3
from medgeom.core.volume import VolumeGeometry

logger = logging.getLogger(__name__)

VectorLike = Sequence[float] | np.ndarray


class LocalizerPoster(ABC):
    """Base class for all strategies that post a geometry onto a localizer."""

    name: str = ""
    description: str = ""

    def __init__(self) -> None:
        self._tlhc: np.ndarray | None = None
        self._rotation: np.ndarray | None = None
        self._pixel_spacing: np.ndarray | None = None
        self._dimensions: np.ndarray | None = None

    def set_localizer_geometry(
        self,
        row: VectorLike,
        column: VectorLike,
        tlhc: VectorLike,
        pixel_spacing: VectorLike,
        dimensions: VectorLike,
    ) -> LocalizerPoster:
        """Configure the localizer onto which geometries will be posted.

        ``pixel_spacing`` is (row spacing, column spacing, ignored) and
        ``dimensions`` is (rows, columns, 1), as for a slice.
        """
        row = as_vector3(row, "row")
        column = as_vector3(column, "column")
        normal = np.cross(row, column)
        with np.errstate(divide="ignore", invalid="ignore"):
            normal = normal / np.linalg.norm(normal)
        rotation = np.vstack((row, column, normal))
        rotation.flags.writeable = False
        self._rotation = rotation
        self._tlhc = as_vector3(tlhc, "tlhc")
        self._pixel_spacing = as_vector3(pixel_spacing, "pixel_spacing")
        self._dimensions = as_vector3(dimensions, "dimensions")
        return self

    def set_localizer_slice(self, geometry: SliceGeometry) -> LocalizerPoster:
        return self.set_localizer_geometry(
            geometry.row, geometry.column, geometry.tlhc,
            geometry.voxel_spacing, geometry.dimensions,
        )

    @property
    def is_configured(self) -> bool:
        return self._rotation is not None

    def _require_localizer(self) -> None:
        if self._rotation is None:
            raise LocalizerNotConfiguredError(type(self).__name__)

    def transform_into_localizer_space(self, point: VectorLike) -> np.ndarray:
        """Move a source-space point into localizer space."""
        self._require_localizer()
        return self._rotation @ (as_vector3(point, "point") - self._tlhc)

    def localizer_plane_offsets(self, point: np.ndarray) -> tuple[float, float]:
        """(x, y) in mm within the localizer plane of a localizer-space point."""
        return float(point[0]), float(point[1])

    def localizer_image_offsets(self, point: np.ndarray) -> tuple[float, float]:
        """(x, y) in localizer pixels of a localizer-space point; Z is dropped."""
        self._require_localizer()
        x, y = self.localizer_plane_offsets(point)
        with np.errstate(divide="ignore", invalid="ignore"):
            return (
                float(np.float64(x) / self._pixel_spacing[1]),
                float(np.float64(y) / self._pixel_spacing[0]),
            )

    def _outline(self, localizer_points: Sequence[np.ndarray], closed: bool) -> Outline:
        points = np.array(
            [self.localizer_image_offsets(p) for p in localizer_points], dtype=np.float64,
        ).reshape(-1, 2)
        return Outline(points=points, closed=closed)

    @staticmethod
    def rectangle_corners(
        row: VectorLike,
        column: VectorLike,
        tlhc: VectorLike,
        voxel_spacing: VectorLike,
        dimensions: VectorLike,
    ) -> list[np.ndarray]:
        """TLHC, TRHC, BRHC and BLHC of a source slice, in source space."""
        row = as_vector3(row, "row")
        column = as_vector3(column, "column")
        tlhc = as_vector3(tlhc, "tlhc")
        spacing = as_vector3(voxel_spacing, "voxel_spacing")
        dims = as_vector3(dimensions, "dimensions")
        along_row = row * spacing[1] * dims[1]
        along_column = column * spacing[0] * dims[0]
        return [
            tlhc,
            tlhc + along_row,
            tlhc + along_row + along_column,
            tlhc + along_column,
        ]

    @staticmethod
    def cuboid_corners(
        row: VectorLike,
        column: VectorLike,
        tlhc: VectorLike,
        voxel_spacing: VectorLike,
        slice_thickness: float,
        dimensions: VectorLike,
    ) -> list[np.ndarray]:
        """Eight corners of the slab a slice occupies, in source space.

        The rectangle is pushed half the thickness each way along the
        right-handed normal: four front corners, then the matching four back.
        """
        rectangle = LocalizerPoster.rectangle_corners(row, column, tlhc, voxel_spacing, dimensions)
        normal = np.cross(as_vector3(row, "row"), as_vector3(column, "column"))
        with np.errstate(divide="ignore", invalid="ignore"):
            half = normal / np.linalg.norm(normal) * (slice_thickness / 2.0)
        return [corner + half for corner in rectangle] + [corner - half for corner in rectangle]

    @staticmethod
    def edge_crosses_localizer_plane(z_start: float, z_end: float) -> bool:
        """True if an edge crosses or touches Z == 0 (both ends on it counts)."""
        return (z_start <= 0 and z_end >= 0) or (z_start >= 0 and z_end <= 0)

    @staticmethod
    def plane_crossings(start: np.ndarray, end: np.ndarray) -> list[np.ndarray]:
        """Points where a crossing edge meets Z == 0.

        An edge lying in the plane yields both of its ends.
        """
        z_start, z_end = start[2], end[2]
        if z_start == 0 and z_end == 0:
            return [start, end]
        if z_start == 0:
            return [start]
        if z_end == 0:
            return [end]
        u = z_start / (z_start - z_end)
        point = start + u * (end - start)
        point[2] = 0.0
        return [point]

    @abstractmethod
    def outline_for_geometry(
        self,
        row: VectorLike,
        column: VectorLike,
        tlhc: VectorLike,
        voxel_spacing: VectorLike,
        slice_thickness: float,
        dimensions: VectorLike,
    ) -> list[Outline]:
        """Outlines on the localizer for a source described by its geometry."""
        ...

    def outline_for_slice(self, geometry: SliceGeometry) -> list[Outline]:
        return self.outline_for_geometry(
            geometry.row, geometry.column, geometry.tlhc,
            geometry.voxel_spacing, geometry.slice_thickness, geometry.dimensions,
        )

    def outline_for_volume(self, volume: VolumeGeometry) -> list[Outline]:
        """Outlines for every frame of a volume, in frame order."""
        outlines: list[Outline] = []
        for geometry in volume:
            outlines.extend(self.outline_for_slice(geometry))
        return outlines
