"""Post a volume as the polygon where its cuboid crosses the localizer plane."""

from __future__ import annotations

import logging

import numpy as np

from medgeom.core.types import Outline
from medgeom.core.volume import VolumeGeometry
from medgeom.posters.base import LocalizerPoster, VectorLike
from medgeom.posters.registry import register_poster

logger = logging.getLogger(__name__)

# Corner index pairs: front ring, back ring, then front-to-back edges
CUBOID_EDGES = (
    (0, 1), (1, 2), (2, 3), (3, 0),
    (4, 5), (5, 6), (6, 7), (7, 4),
    (0, 4), (1, 5), (2, 6), (3, 7),
)

_DUPLICATE_TOLERANCE = 1e-9  # mm


@register_poster("intersect-volume")
class IntersectVolume(LocalizerPoster):
    description = "Intersect the slab or volume cuboid with the localizer plane"

    def outline_for_geometry(
        self,
        row: VectorLike,
        column: VectorLike,
        tlhc: VectorLike,
        voxel_spacing: VectorLike,
        slice_thickness: float,
        dimensions: VectorLike,
    ) -> list[Outline]:
        self._require_localizer()
        corners = self.cuboid_corners(
            row, column, tlhc, voxel_spacing, slice_thickness, dimensions,
        )
        return self._intersect_cuboid(corners)

    def outline_for_volume(self, volume: VolumeGeometry) -> list[Outline]:
        """Intersect the cuboid from the first to the last frame of ``volume``.

        Each end is extended outward by half the slice thickness.
        """
        self._require_localizer()
        if len(volume) == 0:
            return []
        if len(volume) == 1:
            return self.outline_for_slice(volume.slices[0])

        first, last = volume.slices[0], volume.slices[-1]
        normal = np.cross(first.row, first.column)
        with np.errstate(divide="ignore", invalid="ignore"):
            normal = normal / np.linalg.norm(normal)
        if np.dot(last.tlhc - first.tlhc, normal) < 0:
            normal = -normal

        front = self.rectangle_corners(
            first.row, first.column, first.tlhc, first.voxel_spacing, first.dimensions,
        )
        back = self.rectangle_corners(
            last.row, last.column, last.tlhc, last.voxel_spacing, last.dimensions,
        )
        front_offset = normal * (first.slice_thickness / 2.0)
        back_offset = normal * (last.slice_thickness / 2.0)
        corners = [c - front_offset for c in front] + [c + back_offset for c in back]
        return self._intersect_cuboid(corners)

    def _intersect_cuboid(self, corners: list[np.ndarray]) -> list[Outline]:
        corners = [self.transform_into_localizer_space(c) for c in corners]

        points: list[np.ndarray] = []
        for start, end in CUBOID_EDGES:
            a, b = corners[start], corners[end]
            if not self.edge_crosses_localizer_plane(a[2], b[2]):
                continue
            for point in self.plane_crossings(a, b):
                if not any(
                    np.allclose(point, p, rtol=0.0, atol=_DUPLICATE_TOLERANCE) for p in points
                ):
                    points.append(point)

        logger.debug(f"Cuboid crosses the localizer plane at {len(points)} points")
        if len(points) < 2:
            return []
        if len(points) == 2:
            return [self._outline(points, closed=False)]
        return [self._outline(_order_around_centroid(points), closed=True)]


def _order_around_centroid(points: list[np.ndarray]) -> list[np.ndarray]:
    """Order coplanar points by angle about their centroid in the XY plane.

    A plane cuts a convex cuboid in a convex polygon, so this traces the
    polygon boundary; the first crossing found stays first.
    """
    xy = np.array([p[:2] for p in points])
    centroid = xy.mean(axis=0)
    angles = np.arctan2(xy[:, 1] - centroid[1], xy[:, 0] - centroid[0])
    angles = (angles - angles[0]) % (2 * np.pi)
    order = np.argsort(angles, kind="stable")
    return [points[i] for i in order]
