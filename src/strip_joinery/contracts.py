"""Contracts shared by the joinery operations: config, diagnostics, results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from strip_joinery.errors import JoineryError

Vec3 = Tuple[float, float, float]

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


class PiecePolicy(Enum):
    """How a boolean that returns several disjoint pieces is reduced to one."""

    FIRST = "first"
    LARGEST = "largest"


@dataclass(frozen=True)
class JoineryConfig:
    """Numeric policy for every joinery operation.

    ``precision`` is the model tolerance (mm) handed to each kernel call.
    """

    precision: float = 0.001
    world_up: Vec3 = (0.0, 0.0, 1.0)
    fallback_up: Vec3 = (0.0, 1.0, 0.0)
    tiny_vector: float = 1e-9
    piece_policy: PiecePolicy = PiecePolicy.FIRST

    # Growth band: min is exclusive, max is inclusive
    min_scale_factor: float = 1.0
    max_scale_factor: float = 2.0

    # Curved strip slits
    slit_offset_factor: float = 0.25
    slit_compression: float = 0.5

    # Layout projection
    layout_rotation_axis: Vec3 = (0.0, 1.0, 0.0)
    layout_rotation_deg: float = 90.0


@dataclass
class Diagnostic:
    """A message attached to an operation result."""

    code: str
    severity: str  # "error" or "warning"
    message: str
    index: Optional[int] = None


@dataclass
class JoineryResult:
    """Outcome of one operation call.

    ``value is None`` is the "no result" signal; an empty list value is a
    valid (empty) output.
    """

    value: Any = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.value is not None

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == SEVERITY_ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == SEVERITY_WARNING]

    def warn(self, code: str, message: str, index: Optional[int] = None) -> None:
        self.diagnostics.append(Diagnostic(code, SEVERITY_WARNING, message, index))

    @classmethod
    def from_error(
        cls,
        exc: JoineryError,
        diagnostics: Optional[List[Diagnostic]] = None,
    ) -> "JoineryResult":
        collected = list(diagnostics or [])
        collected.append(Diagnostic(exc.code, SEVERITY_ERROR, str(exc), exc.index))
        return cls(value=None, diagnostics=collected)
