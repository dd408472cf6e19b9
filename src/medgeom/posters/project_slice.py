"""Post a slice by parallel projection of its rectangle onto the localizer."""

from __future__ import annotations

from medgeom.core.types import Outline
from medgeom.posters.base import LocalizerPoster, VectorLike
from medgeom.posters.registry import register_poster


@register_poster("project-slice")
class ProjectSlice(LocalizerPoster):
    description = "Project the slice rectangle onto the localizer plane"

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
        corners = self.rectangle_corners(row, column, tlhc, voxel_spacing, dimensions)
        projected = [self.transform_into_localizer_space(c) for c in corners]
        return [self._outline(projected, closed=True)]
