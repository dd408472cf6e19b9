"""Shared test fixtures: synthetic slice geometries."""

from __future__ import annotations

import numpy as np
import pytest

from medgeom.core.slice import SliceGeometry

AXIAL = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
SAGITTAL = ((0.0, 1.0, 0.0), (0.0, 0.0, -1.0))
CORONAL = ((1.0, 0.0, 0.0), (0.0, 0.0, -1.0))


def make_slice(
    row=AXIAL[0],
    column=AXIAL[1],
    tlhc=(0.0, 0.0, 0.0),
    spacing=(0.5, 0.5, 0.0),
    thickness=1.0,
    rows=512,
    columns=512,
) -> SliceGeometry:
    return SliceGeometry(
        row=row,
        column=column,
        tlhc=tlhc,
        voxel_spacing=spacing,
        slice_thickness=thickness,
        dimensions=(rows, columns, 1),
    )


def axial_at(z: float, **kwargs) -> SliceGeometry:
    """Axial slice whose TLHC sits at height z (distance along normal is -z)."""
    return make_slice(tlhc=(0.0, 0.0, z), **kwargs)


def tilted(degrees: float, z: float = 0.0) -> SliceGeometry:
    """Slice tilted about the x axis by the given angle."""
    theta = np.radians(degrees)
    return make_slice(
        column=(0.0, np.cos(theta), np.sin(theta)),
        tlhc=(0.0, 0.0, z),
    )


@pytest.fixture
def axial_slice() -> SliceGeometry:
    return make_slice()


@pytest.fixture
def sagittal_localizer() -> SliceGeometry:
    """512x512 sagittal localizer centered about the origin."""
    return make_slice(
        row=SAGITTAL[0],
        column=SAGITTAL[1],
        tlhc=(0.0, -127.5, 127.5),
        thickness=0.0,
    )


@pytest.fixture
def half_width_axial() -> SliceGeometry:
    """256x256 axial slice centered about the origin."""
    return make_slice(tlhc=(-63.5, -63.5, 0.0), thickness=0.0, rows=256, columns=256)


@pytest.fixture
def regular_axial_stack() -> list[SliceGeometry]:
    """Three axial slices at distances 0, 5 and 10 along the normal."""
    return [axial_at(0.0), axial_at(-5.0), axial_at(-10.0)]


@pytest.fixture
def slice_factory():
    """The ``make_slice`` builder, for tests that need custom geometries."""
    return make_slice


@pytest.fixture
def axial_factory():
    return axial_at


@pytest.fixture
def tilted_factory():
    return tilted
