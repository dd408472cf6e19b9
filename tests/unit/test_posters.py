"""Tests for the localizer posters against a 512x512 sagittal localizer."""

from __future__ import annotations

import math

import numpy as np
import pytest

from medgeom.core.errors import LocalizerNotConfiguredError
from medgeom.core.types import Outline
from medgeom.core.volume import VolumeGeometry
from medgeom.posters.base import LocalizerPoster
from medgeom.posters.intersect_slice import IntersectSlice
from medgeom.posters.intersect_volume import IntersectVolume
from medgeom.posters.project_slice import ProjectSlice

C = 1.0 / math.sqrt(2.0)


def _shoelace_area(points: np.ndarray) -> float:
    x, y = points[:, 0], points[:, 1]
    return 0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


@pytest.fixture
def configure(sagittal_localizer):
    def _configure(poster_cls):
        return poster_cls().set_localizer_slice(sagittal_localizer)

    return _configure


class TestLocalizerSpace:
    def test_tlhc_is_origin(self, configure, sagittal_localizer):
        poster = configure(ProjectSlice)
        assert np.allclose(poster.transform_into_localizer_space(sagittal_localizer.tlhc), 0.0)

    def test_axes(self, configure):
        poster = configure(ProjectSlice)
        # X follows +y, Y follows -z, Z is the right-handed normal (-x)
        point = poster.transform_into_localizer_space((3.0, 0.0, 0.0))
        assert np.allclose(point, [127.5, 127.5, -3.0])

    def test_image_offsets_divide_by_spacing(self, configure):
        poster = configure(ProjectSlice)
        assert poster.localizer_image_offsets(np.array([10.0, 20.0, 99.0])) == pytest.approx((20.0, 40.0))

    def test_set_localizer_geometry_returns_self(self):
        poster = ProjectSlice()
        assert not poster.is_configured
        configured = poster.set_localizer_geometry(
            (0, 1, 0), (0, 0, -1), (0, -127.5, 127.5), (0.5, 0.5, 0), (512, 512, 1),
        )
        assert configured is poster
        assert poster.is_configured

    @pytest.mark.parametrize("poster_cls", [ProjectSlice, IntersectSlice, IntersectVolume])
    def test_unconfigured_raises(self, poster_cls, axial_slice):
        with pytest.raises(LocalizerNotConfiguredError, match=poster_cls.__name__):
            poster_cls().outline_for_slice(axial_slice)


class TestGeometryHelpers:
    def test_rectangle_corner_order(self):
        corners = LocalizerPoster.rectangle_corners(
            (1, 0, 0), (0, 1, 0), (0, 0, 0), (2.0, 0.5, 0.0), (10, 20, 1),
        )
        # row extent uses column spacing and column count; column extent the rows
        expected = [(0, 0, 0), (10, 0, 0), (10, 20, 0), (0, 20, 0)]
        assert np.allclose(corners, expected)

    def test_cuboid_corners(self):
        corners = LocalizerPoster.cuboid_corners(
            (1, 0, 0), (0, 1, 0), (0, 0, 0), (1.0, 1.0, 0.0), 4.0, (2, 2, 1),
        )
        assert len(corners) == 8
        assert np.allclose([c[2] for c in corners[:4]], 2.0)
        assert np.allclose([c[2] for c in corners[4:]], -2.0)
        assert np.allclose(corners[2][:2], corners[6][:2])

    @pytest.mark.parametrize(
        "z_start, z_end, expected",
        [
            (1.0, -1.0, True),
            (-1.0, 1.0, True),
            (0.0, 5.0, True),
            (0.0, 0.0, True),
            (1.0, 2.0, False),
            (-1.0, -0.5, False),
        ],
    )
    def test_edge_crosses(self, z_start, z_end, expected):
        assert LocalizerPoster.edge_crosses_localizer_plane(z_start, z_end) is expected

    def test_plane_crossing_interpolates(self):
        (point,) = LocalizerPoster.plane_crossings(np.array([0.0, 0.0, 2.0]), np.array([4.0, 8.0, -2.0]))
        assert np.allclose(point, [2.0, 4.0, 0.0])

    def test_plane_crossing_endpoint_on_plane(self):
        start, end = np.array([1.0, 1.0, 0.0]), np.array([3.0, 3.0, 5.0])
        (point,) = LocalizerPoster.plane_crossings(start, end)
        assert np.array_equal(point, start)
        assert len(LocalizerPoster.plane_crossings(start, np.array([2.0, 2.0, 0.0]))) == 2


class TestOutline:
    def test_open_segments(self):
        outline = Outline(np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]]), closed=False)
        assert len(outline.segments()) == 2

    def test_closed_adds_closing_segment(self):
        outline = Outline(np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]]), closed=True)
        segments = outline.segments()
        assert len(segments) == 3
        assert segments[-1] == ((1.0, 1.0), (0.0, 0.0))

    def test_closed_line_has_one_segment(self):
        outline = Outline(np.array([[0.0, 0.0], [1.0, 0.0]]), closed=True)
        assert len(outline.segments()) == 1


class TestProjectSlice:
    def test_axial_projects_to_line(self, configure, half_width_axial):
        (outline,) = configure(ProjectSlice).outline_for_slice(half_width_axial)
        assert outline.closed
        expected = [(128.0, 255.0), (128.0, 255.0), (384.0, 255.0), (384.0, 255.0)]
        assert np.allclose(outline.points, expected)

    def test_coplanar_source_is_localizer_frame(self, configure, sagittal_localizer):
        (outline,) = configure(ProjectSlice).outline_for_slice(sagittal_localizer)
        assert outline.closed
        assert np.allclose(outline.points, [(0, 0), (512, 0), (512, 512), (0, 512)])

    def test_parallel_offset_source_still_projected(self, configure, slice_factory):
        offset = slice_factory(row=(0.0, 1.0, 0.0), column=(0.0, 0.0, -1.0), tlhc=(10.0, -127.5, 127.5))
        (outline,) = configure(ProjectSlice).outline_for_slice(offset)
        assert np.allclose(outline.points, [(0, 0), (512, 0), (512, 512), (0, 512)])

    def test_volume_gives_one_outline_per_frame(self, configure, regular_axial_stack):
        outlines = configure(ProjectSlice).outline_for_volume(VolumeGeometry(regular_axial_stack))
        assert len(outlines) == 3
        assert all(o.closed for o in outlines)


class TestIntersectSlice:
    def test_axial_crosses_opposite_edges(self, configure, half_width_axial):
        (outline,) = configure(IntersectSlice).outline_for_slice(half_width_axial)
        assert not outline.closed
        assert np.allclose(outline.points, [(128.0, 255.0), (384.0, 255.0)])

    def test_coplanar_source_draws_full_rectangle(self, configure, sagittal_localizer):
        (outline,) = configure(IntersectSlice).outline_for_slice(sagittal_localizer)
        assert outline.closed
        assert np.allclose(outline.points, [(0, 0), (512, 0), (512, 512), (0, 512)])

    def test_parallel_offset_source_draws_nothing(self, configure, slice_factory):
        offset = slice_factory(row=(0.0, 1.0, 0.0), column=(0.0, 0.0, -1.0), tlhc=(10.0, -127.5, 127.5))
        assert configure(IntersectSlice).outline_for_slice(offset) == []

    def test_corner_cut_crosses_adjacent_edges(self, configure, slice_factory):
        rotated = slice_factory(
            row=(C, C, 0.0), column=(-C, C, 0.0), tlhc=(-5.0, 0.0, 0.0), rows=256, columns=256,
        )
        (outline,) = configure(IntersectSlice).outline_for_slice(rotated)
        assert not outline.closed
        assert len(outline) == 2
        assert np.allclose(outline.points[:, 1], 255.0)

    def test_touching_at_one_corner_draws_nothing(self, configure, slice_factory):
        touching = slice_factory(row=(C, C, 0.0), column=(C, -C, 0.0), rows=256, columns=256)
        assert configure(IntersectSlice).outline_for_slice(touching) == []

    def test_volume_intersects_each_frame(self, configure, slice_factory):
        frames = [
            slice_factory(tlhc=(-63.5, -63.5, z), thickness=0.0, rows=256, columns=256)
            for z in (0.0, -5.0)
        ]
        outlines = configure(IntersectSlice).outline_for_volume(VolumeGeometry(frames))
        assert len(outlines) == 2
        assert np.allclose(outlines[1].points[:, 1], 265.0)


class TestIntersectVolume:
    def test_thick_slab_gives_rectangle(self, configure, slice_factory):
        slab = slice_factory(tlhc=(-63.5, -63.5, 0.0), thickness=10.0, rows=256, columns=256)
        (outline,) = configure(IntersectVolume).outline_for_slice(slab)
        assert outline.closed
        assert np.allclose(
            outline.points, [(128, 245), (384, 245), (384, 265), (128, 265)],
        )
        assert _shoelace_area(outline.points) == pytest.approx(5120.0)

    def test_zero_thickness_slab_gives_line(self, configure, half_width_axial):
        (outline,) = configure(IntersectVolume).outline_for_slice(half_width_axial)
        assert not outline.closed
        assert np.allclose(outline.points, [(128.0, 255.0), (384.0, 255.0)])

    def test_slab_missing_plane_draws_nothing(self, configure, slice_factory):
        offset = slice_factory(
            row=(0.0, 1.0, 0.0), column=(0.0, 0.0, -1.0), tlhc=(10.0, -127.5, 127.5), thickness=4.0,
        )
        assert configure(IntersectVolume).outline_for_slice(offset) == []

    def test_stack_spans_first_to_last_frame(self, configure, slice_factory):
        frames = [
            slice_factory(tlhc=(-63.5, -63.5, z), thickness=0.0, rows=256, columns=256)
            for z in (-10.0, -5.0, 0.0, 5.0, 10.0)
        ]
        (outline,) = configure(IntersectVolume).outline_for_volume(VolumeGeometry(frames))
        assert outline.closed
        assert len(outline) == 4
        assert outline.points[:, 0].min() == pytest.approx(128.0)
        assert outline.points[:, 0].max() == pytest.approx(384.0)
        assert outline.points[:, 1].min() == pytest.approx(235.0)
        assert outline.points[:, 1].max() == pytest.approx(275.0)

    def test_stack_order_does_not_matter(self, configure, slice_factory):
        frames = [
            slice_factory(tlhc=(-63.5, -63.5, z), thickness=2.0, rows=256, columns=256)
            for z in (10.0, 0.0, -10.0)
        ]
        (outline,) = configure(IntersectVolume).outline_for_volume(VolumeGeometry(frames))
        # half the thickness is added beyond each end frame
        assert outline.points[:, 1].min() == pytest.approx(233.0)
        assert outline.points[:, 1].max() == pytest.approx(277.0)

    def test_single_frame_volume_uses_slab(self, configure, slice_factory):
        slab = slice_factory(tlhc=(-63.5, -63.5, 0.0), thickness=10.0, rows=256, columns=256)
        (outline,) = configure(IntersectVolume).outline_for_volume(VolumeGeometry([slab]))
        assert _shoelace_area(outline.points) == pytest.approx(5120.0)

    def test_empty_volume(self, configure):
        assert configure(IntersectVolume).outline_for_volume(VolumeGeometry([])) == []

    def test_oblique_slab_polygon_is_convex(self, configure, slice_factory):
        oblique = slice_factory(
            row=(C, C, 0.0), column=(0.0, 0.0, -1.0), tlhc=(-40.0, -40.0, 60.0),
            thickness=20.0, rows=256, columns=256,
        )
        (outline,) = configure(IntersectVolume).outline_for_slice(oblique)
        assert outline.closed
        points = outline.points
        # every turn has the same sign around a convex polygon
        edges = np.roll(points, -1, axis=0) - points
        turns = edges[:, 0] * np.roll(edges[:, 1], -1) - edges[:, 1] * np.roll(edges[:, 0], -1)
        assert np.all(turns >= -1e-9) or np.all(turns <= 1e-9)
