"""Public API for strip joinery: joints, slits, profiles and flat layouts."""

from strip_joinery.contracts import Diagnostic, JoineryConfig, JoineryResult, PiecePolicy
from strip_joinery.errors import (
    GeometryPrecondition,
    IndexOutOfRange,
    InvalidInput,
    JoineryError,
    KernelFailure,
    ToleranceOutOfPolicy,
)
from strip_joinery.geometry_primitives import Box, Edge, Face, Frame, Plane
from strip_joinery.hook_profile import DefaultBase, ExplicitBase, HookMode, hook_profile
from strip_joinery.kernel import BooleanKind, GeometryKernel, TrimeshKernel
from strip_joinery.mortise_tenon import MortiseTenonPair, mortise_and_tenon
from strip_joinery.multi_strip import MultiStripJoints, multi_strip_joints
from strip_joinery.strip_layouts import CurveSet, StripLayout, project_layouts, unroll_strip
from strip_joinery.strip_slits import SlitPair, curved_strip_slits

__all__ = [
    "BooleanKind",
    "Box",
    "CurveSet",
    "DefaultBase",
    "Diagnostic",
    "Edge",
    "ExplicitBase",
    "Face",
    "Frame",
    "GeometryKernel",
    "GeometryPrecondition",
    "HookMode",
    "IndexOutOfRange",
    "InvalidInput",
    "JoineryConfig",
    "JoineryError",
    "JoineryResult",
    "KernelFailure",
    "MortiseTenonPair",
    "MultiStripJoints",
    "PiecePolicy",
    "Plane",
    "SlitPair",
    "StripLayout",
    "ToleranceOutOfPolicy",
    "TrimeshKernel",
    "curved_strip_slits",
    "hook_profile",
    "mortise_and_tenon",
    "multi_strip_joints",
    "project_layouts",
    "unroll_strip",
]
