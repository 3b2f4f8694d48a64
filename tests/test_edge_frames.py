"""Tests for edge_frames.py and joint_boxes.py: frames and mirrored cutter boxes."""
import numpy as np
import pytest

from strip_joinery.contracts import JoineryConfig
from strip_joinery.edge_frames import build_edge_frame, frame_from_edge
from strip_joinery.errors import (
    GeometryPrecondition,
    IndexOutOfRange,
    InvalidInput,
)
from strip_joinery.geometry_primitives import Edge, Frame, Plane
from strip_joinery.joint_boxes import build_joint_boxes, resolve_mirror_plane


def _assert_orthonormal(frame):
    axes = np.array([frame.x_axis, frame.y_axis, frame.z_axis])
    np.testing.assert_allclose(axes @ axes.T, np.eye(3), atol=1e-12)


class TestEdgeFrames:
    def test_horizontal_edge_uses_world_up(self):
        """An edge along X gets x_axis = -Y and y_axis = +Z."""
        frame = frame_from_edge(Edge(0, [[-5, -50, 60], [5, -50, 60]]))
        np.testing.assert_allclose(frame.origin, [0, -50, 60])
        np.testing.assert_allclose(frame.x_axis, [0, -1, 0], atol=1e-12)
        np.testing.assert_allclose(frame.y_axis, [0, 0, 1], atol=1e-12)
        np.testing.assert_allclose(frame.z_axis, [-1, 0, 0], atol=1e-12)
        _assert_orthonormal(frame)

    def test_vertical_edge_takes_fallback_axis(self):
        """An edge parallel to world up falls back to world Y."""
        frame = frame_from_edge(Edge(0, [[-5, -50, 0], [-5, -50, 60]]))
        np.testing.assert_allclose(frame.origin, [-5, -50, 30])
        np.testing.assert_allclose(frame.x_axis, [-1, 0, 0], atol=1e-12)
        np.testing.assert_allclose(frame.y_axis, [0, 1, 0], atol=1e-12)
        _assert_orthonormal(frame)

    def test_oblique_edge_is_orthonormal(self):
        frame = frame_from_edge(Edge(0, [[0, 0, 0], [3, 1, 7]]))
        _assert_orthonormal(frame)
        tangent = np.array([3, 1, 7]) / np.linalg.norm([3, 1, 7])
        np.testing.assert_allclose(frame.z_axis, -tangent, atol=1e-12)

    def test_origin_is_arc_length_midpoint(self):
        """Midpoint by length, not by vertex count."""
        frame = frame_from_edge(Edge(0, [[0, 0, 0], [2, 0, 0], [10, 0, 0]]))
        np.testing.assert_allclose(frame.origin, [5, 0, 0])

    def test_edge_parallel_to_both_axes_raises(self):
        config = JoineryConfig(fallback_up=(0.0, 0.0, 1.0))
        with pytest.raises(GeometryPrecondition):
            frame_from_edge(Edge(0, [[0, 0, 0], [0, 0, 5]]), config)

    def test_build_from_solid(self, vertical_strip, kernel):
        frame = build_edge_frame(vertical_strip, 0, kernel=kernel)
        np.testing.assert_allclose(frame.origin, [-5, -50, 30], atol=1e-9)
        _assert_orthonormal(frame)

    def test_index_out_of_range(self, vertical_strip, kernel):
        with pytest.raises(IndexOutOfRange) as info:
            build_edge_frame(vertical_strip, 12, kernel=kernel)
        assert info.value.index == 12
        with pytest.raises(IndexOutOfRange):
            build_edge_frame(vertical_strip, -1, kernel=kernel)

    def test_curved_edge_raises(self, curved_strip, kernel):
        edges = kernel.edges(curved_strip, precision=0.001)
        arc = next(e for e in edges if not e.is_linear(0.001))
        with pytest.raises(GeometryPrecondition) as info:
            build_edge_frame(curved_strip, arc.index, kernel=kernel)
        assert info.value.code == "geometry_precondition"


class TestJointBoxes:
    def _frame(self):
        return frame_from_edge(Edge(0, [[-5, -50, 0], [-5, -50, 60]]))

    def test_cube_and_mirror(self):
        box, mirrored = build_joint_boxes(self._frame(), 5.0, Plane.world_xz([0, 0, 30]))
        np.testing.assert_allclose(box.extents, [5, 5, 5])
        np.testing.assert_allclose(box.center, [-5, -50, 30], atol=1e-12)
        np.testing.assert_allclose(mirrored.center, [-5, 50, 30], atol=1e-12)
        np.testing.assert_allclose(mirrored.extents, [5, 5, 5])

    def test_mirroring_twice_is_identity(self):
        """Mirror of the mirror lands back on the original box."""
        plane = Plane([1, 2, 3], [1, 1, 0], [0, 0, 1])
        box, mirrored = build_joint_boxes(self._frame(), 4.0, plane)
        back = mirrored.transformed(plane.mirror_matrix())
        np.testing.assert_allclose(back.center, box.center, atol=1e-9)
        np.testing.assert_allclose(back.frame.x_axis, box.frame.x_axis, atol=1e-9)
        np.testing.assert_allclose(back.frame.y_axis, box.frame.y_axis, atol=1e-9)
        assert back.z_interval == box.z_interval

    def test_mirrored_box_solid_matches(self, kernel):
        plane = Plane.world_xz([0, 0, 30])
        box, mirrored = build_joint_boxes(self._frame(), 5.0, plane)
        a, b = kernel.box_solid(box), kernel.box_solid(mirrored)
        assert a.volume == pytest.approx(125.0)
        assert b.volume == pytest.approx(125.0)
        np.testing.assert_allclose(b.bounds[:, 1], -a.bounds[::-1, 1], atol=1e-9)

    @pytest.mark.parametrize("thickness", [0.0, -1.0, None, float("nan")])
    def test_bad_thickness(self, thickness):
        with pytest.raises(InvalidInput):
            build_joint_boxes(self._frame(), thickness, Plane.world_xy())

    def test_missing_plane(self):
        with pytest.raises(InvalidInput):
            build_joint_boxes(self._frame(), 5.0, None)


class TestMirrorPlaneResolution:
    def test_centroid_only_gives_world_xz(self):
        plane = resolve_mirror_plane(None, [1, 2, 3])
        np.testing.assert_allclose(plane.origin, [1, 2, 3])
        np.testing.assert_allclose(plane.normal, [0, -1, 0], atol=1e-12)

    def test_plane_is_reanchored_at_centroid(self):
        plane = resolve_mirror_plane(Plane.world_xy(), [0, 0, 7])
        np.testing.assert_allclose(plane.origin, [0, 0, 7])
        np.testing.assert_allclose(plane.normal, [0, 0, 1])

    def test_plane_only(self):
        given = Plane([4, 0, 0], [0, 1, 0], [0, 0, 1])
        assert resolve_mirror_plane(given) is given

    def test_neither_raises(self):
        with pytest.raises(InvalidInput):
            resolve_mirror_plane(None, None)
