"""Poster registry with decorator-based registration, and the poster factory."""

from __future__ import annotations

import logging
from typing import Type

from medgeom.core.errors import PosterConstructionError
from medgeom.posters.base import LocalizerPoster

logger = logging.getLogger(__name__)

_registry: dict[str, Type[LocalizerPoster]] = {}


def register_poster(name: str):
    """Decorator to register a localizer poster."""

    def decorator(cls: Type[LocalizerPoster]):
        cls.name = name
        _registry[name] = cls
        return cls

    return decorator


def get_poster(name: str) -> LocalizerPoster:
    """Get a new instance of a registered poster by name."""
    _ensure_posters_loaded()
    if name not in _registry:
        available = ", ".join(_registry.keys())
        raise ValueError(f"Unknown poster '{name}'. Available: {available}")
    return _registry[name]()


def list_posters() -> list[dict[str, str]]:
    """List all registered posters with their info."""
    _ensure_posters_loaded()
    return [
        {"name": name, "description": cls.description}
        for name, cls in _registry.items()
    ]


def poster_name(project_rather_than_intersect: bool, plane_rather_than_volume: bool) -> str:
    """Registry name of the strategy selected by the two flags."""
    if project_rather_than_intersect:
        return "project-slice"
    if plane_rather_than_volume:
        return "intersect-slice"
    return "intersect-volume"


def get_localizer_poster(
    project_rather_than_intersect: bool,
    plane_rather_than_volume: bool,
) -> LocalizerPoster:
    """Return a new poster for the requested behaviour.

    Projection ignores ``plane_rather_than_volume``; for intersection it
    chooses between the slice rectangle and the slab/volume cuboid.

    Raises:
        PosterConstructionError: If the poster cannot be instantiated.
    """
    name = poster_name(project_rather_than_intersect, plane_rather_than_volume)
    logger.debug(f"Selected localizer poster '{name}'")
    try:
        return get_poster(name)
    except Exception as e:
        logger.error(f"Could not construct localizer poster '{name}': {e}")
        raise PosterConstructionError(
            f"Could not construct localizer poster '{name}'",
            project=project_rather_than_intersect,
            plane=plane_rather_than_volume,
        ) from e


def _ensure_posters_loaded():
    """Import poster modules to trigger registration."""
    import medgeom.posters.intersect_slice  # noqa: F401
    import medgeom.posters.intersect_volume  # noqa: F401
    import medgeom.posters.project_slice  # noqa: F401
