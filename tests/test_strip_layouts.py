"""Tests for strip_layouts.py: projected layouts and developable unrolls."""
import numpy as np
import pytest
import trimesh
from shapely.geometry import LineString, Polygon

from strip_joinery.kernel import TrimeshKernel
from strip_joinery.strip_layouts import CurveSet, StripLayout, project_layouts, unroll_strip


def _area(curve):
    return Polygon(curve.coords).area


class EmptyUnrollKernel(TrimeshKernel):
    def unroll(self, face, precision):
        return []


class OpenJoinKernel(TrimeshKernel):
    def join_curves(self, curves, precision):
        return [], [LineString([(0, 0), (1, 0)])]


class TestProjectLayouts:
    def test_box_strips_give_closed_outlines(self, kernel, vertical_strip, horizontal_strip):
        result = project_layouts(vertical_strip, horizontal_strip, kernel=kernel)
        assert result.ok
        assert result.warnings == []
        layout = result.value
        assert isinstance(layout, StripLayout)

        # Vertical strip turned flat: 60 x 100 instead of 10 x 100
        assert len(layout.vertical.closed) == 1 and layout.vertical.open == []
        assert _area(layout.vertical.closed[0]) == pytest.approx(6000.0)
        np.testing.assert_allclose(layout.vertical.bounds, (-30, -50, 30, 50), atol=1e-6)

        assert len(layout.horizontal.closed) == 1
        assert _area(layout.horizontal.closed[0]) == pytest.approx(10000.0)

    def test_input_not_rotated_in_place(self, kernel, vertical_strip, horizontal_strip):
        before = vertical_strip.bounds.copy()
        project_layouts(vertical_strip, horizontal_strip, kernel=kernel)
        np.testing.assert_allclose(vertical_strip.bounds, before)

    def test_unjoined_curves_warn(self, kernel, vertical_strip, strip_a, strip_b):
        """Two crossing outlines node into open pieces."""
        crossing = trimesh.util.concatenate([strip_a, strip_b])
        result = project_layouts(vertical_strip, crossing, kernel=kernel)
        assert result.ok
        assert result.value.horizontal.open
        assert [w.code for w in result.warnings] == ["unjoined_curves"]

    def test_missing_solid(self, kernel, horizontal_strip):
        result = project_layouts(None, horizontal_strip, kernel=kernel)
        assert result.value is None
        assert result.errors[0].code == "invalid_input"


class TestCurveSet:
    def test_from_curves_sorts_by_closure(self):
        ring = LineString([(0, 0), (1, 0), (1, 1), (0, 0)])
        line = LineString([(0, 0), (2, 3)])
        curves = CurveSet.from_curves([line, ring])
        assert curves.closed == [ring]
        assert curves.open == [line]
        assert len(curves) == 2
        assert curves.bounds == (0.0, 0.0, 2.0, 3.0)

    def test_empty_bounds(self):
        assert CurveSet().bounds == (0.0, 0.0, 0.0, 0.0)


class TestUnrollStrip:
    def test_flat_face(self, kernel, vertical_strip):
        """Face 0 is the x = -5 side, 100 x 60."""
        result = unroll_strip(vertical_strip, 0, kernel=kernel)
        assert result.ok, result.diagnostics
        assert result.value.is_closed
        assert _area(result.value) == pytest.approx(6000.0)
        assert result.value.length == pytest.approx(320.0)

    def test_curved_face_keeps_area(self, kernel, curved_strip):
        faces = kernel.faces(curved_strip, precision=0.001)
        outer = max(faces, key=lambda f: f.area)
        result = unroll_strip(curved_strip, outer.index, kernel=kernel)
        assert result.ok, result.diagnostics
        assert _area(result.value) == pytest.approx(outer.area, rel=1e-6)
        # Height stays 20; width is the polygonal arc length
        chord = 2 * 50 * np.sin(np.radians(90 / 16) / 2)
        assert result.value.length == pytest.approx(2 * (20 + 16 * chord), rel=1e-6)

    def test_sphere_is_not_developable(self, kernel):
        sphere = trimesh.creation.icosphere(subdivisions=3, radius=100)
        result = unroll_strip(sphere, 0, kernel=kernel)
        assert result.value is None
        assert result.errors[0].code == "geometry_precondition"

    def test_missing_solid(self, kernel):
        result = unroll_strip(None, 0, kernel=kernel)
        assert result.errors[0].code == "invalid_input"

    def test_index_out_of_range(self, kernel, vertical_strip):
        result = unroll_strip(vertical_strip, 6, kernel=kernel)
        assert result.errors[0].code == "index_out_of_range"
        assert result.errors[0].index == 6

    def test_unroll_empty(self, vertical_strip):
        result = unroll_strip(vertical_strip, 0, kernel=EmptyUnrollKernel())
        assert result.value is None
        assert result.errors[0].code == "unroll_empty"
        assert result.errors[0].message == "Unroll failed"

    def test_join_failed(self, vertical_strip):
        result = unroll_strip(vertical_strip, 0, kernel=OpenJoinKernel())
        assert result.value is None
        assert result.errors[0].code == "join_failed"
        assert result.errors[0].message == "Edge joining failed"
