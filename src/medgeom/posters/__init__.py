"""Localizer posters: project a slice, intersect a slice, intersect a volume."""

from medgeom.posters.base import LocalizerPoster
from medgeom.posters.intersect_slice import IntersectSlice
from medgeom.posters.intersect_volume import IntersectVolume
from medgeom.posters.project_slice import ProjectSlice
from medgeom.posters.registry import get_localizer_poster, get_poster, list_posters

__all__ = [
    "IntersectSlice",
    "IntersectVolume",
    "LocalizerPoster",
    "ProjectSlice",
    "get_localizer_poster",
    "get_poster",
    "list_posters",
]
