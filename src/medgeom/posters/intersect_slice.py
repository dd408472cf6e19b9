"""Post a slice as the line where its rectangle crosses the localizer plane."""

from __future__ import annotations

import logging

import numpy as np

from medgeom.core.types import Outline
from medgeom.posters.base import LocalizerPoster, VectorLike
from medgeom.posters.registry import register_poster

logger = logging.getLogger(__name__)


def _opposite_edges(edges: list[bool]) -> bool:
    return (edges[0] and edges[2]) or (edges[1] and edges[3])


def _adjacent_edges(edges: list[bool]) -> bool:
    return any(edges[i] and edges[(i + 1) % 4] for i in range(4))


@register_poster("intersect-slice")
class IntersectSlice(LocalizerPoster):
    description = "Intersect the slice rectangle with the localizer plane"

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
        corners = [
            self.transform_into_localizer_space(c)
            for c in self.rectangle_corners(row, column, tlhc, voxel_spacing, dimensions)
        ]
        # edge i runs from corner i to corner i + 1
        edges = [
            self.edge_crosses_localizer_plane(corners[i][2], corners[(i + 1) % 4][2])
            for i in range(4)
        ]

        if all(edges):
            logger.debug("Source slice lies in the localizer plane")
            return [self._outline(corners, closed=True)]
        if _opposite_edges(edges) or _adjacent_edges(edges):
            logger.debug(f"Edges crossing the localizer plane: {edges}")
            points = self._crossing_points(corners, edges)
            if len(points) < 2:
                # touches the plane at a single corner
                return []
            return [self._outline(points, closed=False)]
        logger.debug("Source slice does not cross the localizer plane")
        return []

    def _crossing_points(self, corners: list[np.ndarray], edges: list[bool]) -> list[np.ndarray]:
        points: list[np.ndarray] = []
        for i, crosses in enumerate(edges):
            if not crosses:
                continue
            for point in self.plane_crossings(corners[i], corners[(i + 1) % 4]):
                if not points or not np.allclose(points[-1], point, rtol=0.0, atol=1e-9):
                    points.append(point)
        if len(points) > 2 and np.allclose(points[0], points[-1], rtol=0.0, atol=1e-9):
            points.pop()
        return points
