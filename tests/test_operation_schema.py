"""Tests for operation_schema.py: declarative operation records."""
import pytest

from strip_joinery.contracts import JoineryConfig
from strip_joinery.operation_schema import (
    LIST,
    OPERATIONS,
    SOLID,
    get_operation,
)


class TestOperationRegistry:
    def test_all_operations_registered(self):
        assert set(OPERATIONS) == {
            "mortise-tenon", "multi-strip", "strip-slits",
            "strip-layouts", "unroll-strip", "hook-profile",
        }

    @pytest.mark.parametrize("name", sorted(OPERATIONS))
    def test_input_names_unique(self, name):
        names = [p.name for p in OPERATIONS[name].inputs]
        assert len(names) == len(set(names))
        assert OPERATIONS[name].outputs

    def test_multi_strip_takes_a_list(self):
        verticals = get_operation("multi-strip").input("verticals")
        assert verticals.type == SOLID
        assert verticals.cardinality == LIST

    def test_optional_inputs(self):
        spec = get_operation("mortise-tenon")
        assert spec.input("mirror_plane").optional
        assert not spec.input("horizontal").optional

    def test_unknown_operation(self):
        with pytest.raises(KeyError):
            get_operation("dovetail")

    def test_runner_with_defaults(self, kernel):
        spec = get_operation("hook-profile")
        values = {p.name: p.default for p in spec.inputs}
        result = spec.runner(values, JoineryConfig(), kernel)
        assert result.ok
        (sections,) = spec.outputs
        assert len(sections.getter(result.value)) == 2

    def test_runner_passes_solids(self, kernel, horizontal_strip, vertical_strip):
        spec = get_operation("mortise-tenon")
        values = {p.name: p.default for p in spec.inputs}
        values.update(horizontal=horizontal_strip, vertical=vertical_strip)
        result = spec.runner(values, JoineryConfig(), kernel)
        assert result.ok, result.diagnostics
        mortise, tenon = (out.getter(result.value) for out in spec.outputs)
        assert mortise.volume < horizontal_strip.volume
        assert tenon.volume < vertical_strip.volume
