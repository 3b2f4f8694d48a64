"""Tests for strip_slits.py: complementary slit tools for crossing strips."""
import numpy as np
import pytest

from strip_joinery.contracts import JoineryConfig
from strip_joinery.geometry_primitives import uniform_scale_about
from strip_joinery.kernel import BooleanKind, TrimeshKernel
from strip_joinery.strip_slits import SlitPair, curved_strip_slits

# Grown overlap is 11 x 11 x 44; edge 0 is its vertical edge at (-5.5, -5.5).
# Squashed to 22 tall and shifted 11 up / down, each tool removes 11 x 10 x 20.
SLIT = 11 * 10 * 20


class FailingDifferenceKernel(TrimeshKernel):
    """Returns nothing for differences whose target is in ``targets``."""

    def __init__(self, *targets):
        super().__init__()
        self.targets = targets

    def boolean(self, kind, solids, precision):
        if kind is BooleanKind.DIFFERENCE and any(solids[0] is t for t in self.targets):
            return []
        return super().boolean(kind, solids, precision)


class TestCurvedStripSlits:
    def test_complementary_slits(self, kernel, strip_a, strip_b):
        result = curved_strip_slits(strip_a, strip_b, 0.1, 0, kernel=kernel)
        assert result.ok, result.diagnostics
        assert result.diagnostics == []
        pair = result.value
        assert isinstance(pair, SlitPair)

        assert pair.a.volume == pytest.approx(40000 - SLIT, rel=1e-6)
        assert pair.b.volume == pytest.approx(40000 - SLIT, rel=1e-6)
        # A is slit from above, B from below
        assert pair.a.contains([[0, 0, 30], [0, 0, 10]]).tolist() == [False, True]
        assert pair.b.contains([[0, 0, 30], [0, 0, 10]]).tolist() == [True, False]

    def test_tools_are_offset_along_edge(self, kernel, strip_a, strip_b):
        pair = curved_strip_slits(strip_a, strip_b, 0.1, 0, kernel=kernel).value
        np.testing.assert_allclose(
            pair.positive_tool.bounds, [[-5.5, -5.5, 20], [5.5, 5.5, 42]], atol=1e-6,
        )
        np.testing.assert_allclose(
            pair.negative_tool.bounds, [[-5.5, -5.5, -2], [5.5, 5.5, 20]], atol=1e-6,
        )

    def test_short_offset_warns_overlap(self, kernel, strip_a, strip_b):
        config = JoineryConfig(slit_offset_factor=0.1)
        result = curved_strip_slits(strip_a, strip_b, 0.1, 0, config=config, kernel=kernel)
        assert result.ok
        assert [w.code for w in result.warnings] == ["slit_tools_overlap"]

    def test_one_side_failing_is_a_warning(self, strip_a, strip_b):
        result = curved_strip_slits(
            strip_a, strip_b, 0.1, 0, kernel=FailingDifferenceKernel(strip_b),
        )
        assert result.ok
        assert result.value.b is None
        assert result.value.a is not None
        assert [w.code for w in result.warnings] == ["kernel_failure"]

    def test_both_sides_failing_is_fatal(self, strip_a, strip_b):
        result = curved_strip_slits(
            strip_a, strip_b, 0.1, 0, kernel=FailingDifferenceKernel(strip_a, strip_b),
        )
        assert result.value is None
        assert len(result.warnings) == 2
        assert result.errors[0].code == "kernel_failure"

    def test_disjoint_strips(self, kernel, strip_a, strip_b):
        strip_b.apply_translation([0, 0, 100])
        result = curved_strip_slits(strip_a, strip_b, 0.1, 0, kernel=kernel)
        assert result.value is None
        assert result.errors[0].code == "kernel_failure"

    def test_edge_index_checked_on_grown_overlap(self, kernel, strip_a, strip_b):
        result = curved_strip_slits(strip_a, strip_b, 0.1, 12, kernel=kernel)
        assert result.value is None
        assert result.errors[0].code == "index_out_of_range"

    def test_tolerance_checked_first(self, spy_kernel, strip_a, strip_b):
        result = curved_strip_slits(strip_a, strip_b, 0.0, 0, kernel=spy_kernel)
        assert result.errors[0].code == "tolerance_out_of_policy"
        assert spy_kernel.boolean_calls == 0


# Mid-wall arcs of the crossing strips meet at radius 49 from both axes
CROSSING = (35.5, 33.775)


def _grown_overlap_edges(kernel, a, b, tolerance):
    overlap = kernel.boolean(BooleanKind.INTERSECTION, [a, b], precision=0.001)[0]
    grown = kernel.transform(
        overlap, uniform_scale_about(kernel.bounding_box_center(overlap), 1.0 + tolerance),
    )
    return kernel.edges(grown, precision=0.001)


class TestCrossingCurvedStrips:
    def test_straight_edges_are_the_vertical_ones(self, kernel, crossing_strips):
        edges = _grown_overlap_edges(kernel, *crossing_strips, 0.1)
        straight = [e for e in edges if e.is_linear(0.001)]
        curved = [e for e in edges if not e.is_linear(0.001)]
        assert len(straight) == 4
        assert len(curved) == 8
        for edge in straight:
            np.testing.assert_allclose(np.abs(edge.direction), [0, 0, 1], atol=1e-6)

    def test_slit_on_straight_edge(self, kernel, crossing_strips):
        a, b = crossing_strips
        edges = _grown_overlap_edges(kernel, a, b, 0.1)
        index = next(e.index for e in edges if e.is_linear(0.001))

        result = curved_strip_slits(a, b, 0.1, index, kernel=kernel)
        assert result.ok, result.diagnostics
        assert result.diagnostics == []
        pair = result.value
        assert 0 < a.volume - pair.a.volume < 200
        assert 0 < b.volume - pair.b.volume < 200

        x, y = CROSSING
        # A loses the upper half of the crossing, B the lower half
        assert pair.a.contains([[x, y, 15.0], [x, y, 5.0]]).tolist() == [False, True]
        assert pair.b.contains([[x, y, 15.0], [x, y, 5.0]]).tolist() == [True, False]
        # Away from the crossing both walls are untouched
        assert pair.a.contains([[49.0, 0.5, 15.0]]).tolist() == [True]
        assert pair.b.contains([[71.0 - 0.5, 49.0, 5.0]]).tolist() == [True]

    def test_curved_edge_is_rejected(self, kernel, crossing_strips):
        a, b = crossing_strips
        edges = _grown_overlap_edges(kernel, a, b, 0.1)
        index = next(e.index for e in edges if not e.is_linear(0.001))

        result = curved_strip_slits(a, b, 0.1, index, kernel=kernel)
        assert result.value is None
        assert result.errors[0].code == "geometry_precondition"
        assert result.errors[0].index == index
