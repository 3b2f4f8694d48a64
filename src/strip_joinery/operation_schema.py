"""Declarative records describing each joinery operation's inputs and outputs.

Front ends (the bundled CLI, or a host plugin) build their parameter lists
from ``OPERATIONS`` instead of hard-coding them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from strip_joinery.contracts import JoineryConfig, JoineryResult
from strip_joinery.geometry_primitives import Plane
from strip_joinery.hook_profile import DefaultBase, ExplicitBase, HookMode, hook_profile
from strip_joinery.kernel import GeometryKernel
from strip_joinery.mortise_tenon import mortise_and_tenon
from strip_joinery.multi_strip import multi_strip_joints
from strip_joinery.strip_layouts import project_layouts, unroll_strip
from strip_joinery.strip_slits import curved_strip_slits

# Parameter types understood by front ends
SOLID = "solid"
NUMBER = "number"
INTEGER = "integer"
BOOLEAN = "boolean"
POINT = "point"
PLANE = "plane"
CURVE = "curve"
CHOICE = "choice"
CURVES = "curves"
LAYOUT = "layout"

ITEM = "item"
LIST = "list"

Runner = Callable[[Dict[str, Any], JoineryConfig, GeometryKernel], JoineryResult]


@dataclass(frozen=True)
class ParamSpec:
    """One input or output slot of an operation."""

    name: str
    type: str
    cardinality: str = ITEM
    default: Any = None
    optional: bool = False
    description: str = ""
    choices: Tuple[str, ...] = ()


@dataclass(frozen=True)
class OutputSpec:
    """One output slot plus how to pull it out of the operation's value."""

    name: str
    type: str
    cardinality: str = ITEM
    description: str = ""
    getter: Callable[[Any], Any] = field(default=lambda value: value, compare=False)


@dataclass(frozen=True)
class OperationSpec:
    name: str
    summary: str
    inputs: Tuple[ParamSpec, ...]
    outputs: Tuple[OutputSpec, ...]
    runner: Runner = field(compare=False)

    def input(self, name: str) -> ParamSpec:
        for param in self.inputs:
            if param.name == name:
                return param
        raise KeyError(name)


# ─── Runners ─────────────────────────────────────────────────────────────────

def _plane(values: Dict[str, Any]) -> Optional[Plane]:
    return values.get("mirror_plane")


def _run_mortise_tenon(values, config, kernel):
    return mortise_and_tenon(
        values["horizontal"],
        values["vertical"],
        values["thickness"],
        values["tolerance"],
        values["edge_index"],
        mirror_plane=_plane(values),
        centroid=values.get("centroid"),
        config=config,
        kernel=kernel,
    )


def _run_multi_strip(values, config, kernel):
    return multi_strip_joints(
        values["horizontal"],
        values["verticals"],
        values["thickness"],
        values["tolerance"],
        values["edge_index"],
        mirror_plane=_plane(values),
        centroid=values.get("centroid"),
        config=config,
        kernel=kernel,
    )


def _run_strip_slits(values, config, kernel):
    return curved_strip_slits(
        values["strip_a"],
        values["strip_b"],
        values["tolerance"],
        values["edge_index"],
        config=config,
        kernel=kernel,
    )


def _run_strip_layouts(values, config, kernel):
    return project_layouts(
        values["vertical"],
        values["horizontal"],
        config=config,
        kernel=kernel,
    )


def _run_unroll_strip(values, config, kernel):
    return unroll_strip(values["solid"], values["face_index"], config=config, kernel=kernel)


def _run_hook_profile(values, config, kernel):
    if values.get("base_curve") is not None:
        base = ExplicitBase(values["base_curve"])
    else:
        base = DefaultBase(width=values["base_width"], height=values["base_height"])
    return hook_profile(
        base=base,
        step_offset=values["step_offset"],
        step_width=values["step_width"],
        step_height=values["step_height"],
        mode=HookMode(values["mode"]),
        slant_base=(values["slant_base_x"], values["slant_base_y"]),
        slope_height=values["slope_height"],
        mirror=values["mirror"],
    )


# ─── Registry ────────────────────────────────────────────────────────────────

_JOINT_INPUTS = (
    ParamSpec("thickness", NUMBER, default=5.0, description="Cutter cube edge length (mm)"),
    ParamSpec("tolerance", NUMBER, default=0.1, description="Clearance fraction, 1 + t in (1, 2]"),
    ParamSpec("edge_index", INTEGER, default=0, description="Edge of the vertical strip carrying the joint"),
    ParamSpec("mirror_plane", PLANE, optional=True, description="Plane the cutters are mirrored across"),
    ParamSpec("centroid", POINT, optional=True, description="Anchor point for the mirror plane"),
)

OPERATIONS: Dict[str, OperationSpec] = {
    spec.name: spec
    for spec in (
        OperationSpec(
            name="mortise-tenon",
            summary="Mortise and tenon between one vertical and one horizontal strip",
            inputs=(
                ParamSpec("horizontal", SOLID, description="Strip receiving the mortise"),
                ParamSpec("vertical", SOLID, description="Strip carved into the tenon"),
            ) + _JOINT_INPUTS,
            outputs=(
                OutputSpec("mortise", SOLID, getter=lambda v: v.mortise),
                OutputSpec("tenon", SOLID, getter=lambda v: v.tenon),
            ),
            runner=_run_mortise_tenon,
        ),
        OperationSpec(
            name="multi-strip",
            summary="Mortise and tenon joints for several vertical strips on one horizontal strip",
            inputs=(
                ParamSpec("horizontal", SOLID, description="Strip receiving the mortises"),
                ParamSpec("verticals", SOLID, cardinality=LIST, description="Strips carved into tenons"),
            ) + _JOINT_INPUTS,
            outputs=(
                OutputSpec("mortise", SOLID, getter=lambda v: v.mortise),
                OutputSpec("tenons", SOLID, cardinality=LIST, getter=lambda v: v.tenons),
            ),
            runner=_run_multi_strip,
        ),
        OperationSpec(
            name="strip-slits",
            summary="Complementary slits for two crossing curved strips",
            inputs=(
                ParamSpec("strip_a", SOLID, description="Strip slit from the positive side"),
                ParamSpec("strip_b", SOLID, description="Strip slit from the negative side"),
                ParamSpec("tolerance", NUMBER, default=0.05, description="Clearance fraction"),
                ParamSpec("edge_index", INTEGER, default=0, description="Straight edge of the strip overlap"),
            ),
            outputs=(
                OutputSpec("strip_a", SOLID, getter=lambda v: v.a),
                OutputSpec("strip_b", SOLID, getter=lambda v: v.b),
            ),
            runner=_run_strip_slits,
        ),
        OperationSpec(
            name="strip-layouts",
            summary="Projected flat outlines of a vertical and a horizontal strip",
            inputs=(
                ParamSpec("vertical", SOLID, description="Strip turned flat before projection"),
                ParamSpec("horizontal", SOLID, description="Strip projected as is"),
            ),
            outputs=(
                OutputSpec("layout", LAYOUT),
            ),
            runner=_run_strip_layouts,
        ),
        OperationSpec(
            name="unroll-strip",
            summary="Developed outline of one face of a curved strip",
            inputs=(
                ParamSpec("solid", SOLID, description="Curved strip"),
                ParamSpec("face_index", INTEGER, default=0, description="Face to unroll"),
            ),
            outputs=(
                OutputSpec("outline", CURVES, getter=lambda v: [v]),
            ),
            runner=_run_unroll_strip,
        ),
        OperationSpec(
            name="hook-profile",
            summary="Section curves of a hooked tenon",
            inputs=(
                ParamSpec("base_curve", CURVE, optional=True, description="Closed base section"),
                ParamSpec("base_width", NUMBER, default=28.0, description="Default base width"),
                ParamSpec("base_height", NUMBER, default=10.0, description="Default base height"),
                ParamSpec("step_offset", NUMBER, default=4.0),
                ParamSpec("step_width", NUMBER, default=4.0),
                ParamSpec("step_height", NUMBER, default=10.0),
                ParamSpec("mode", CHOICE, default=HookMode.STEP.value,
                          choices=tuple(m.value for m in HookMode)),
                ParamSpec("slant_base_x", NUMBER, default=16.0),
                ParamSpec("slant_base_y", NUMBER, default=18.0),
                ParamSpec("slope_height", NUMBER, default=10.0),
                ParamSpec("mirror", BOOLEAN, default=False, description="Add the reflection across x = 0"),
            ),
            outputs=(
                OutputSpec("sections", CURVES, cardinality=LIST),
            ),
            runner=_run_hook_profile,
        ),
    )
}


def get_operation(name: str) -> OperationSpec:
    try:
        return OPERATIONS[name]
    except KeyError:
        raise KeyError(f"Unknown operation {name!r}; known: {sorted(OPERATIONS)}") from None
