"""Error taxonomy for joinery operations.

Stage functions raise these; operation entry points catch them and turn them
into ``JoineryResult`` diagnostics.
"""

from __future__ import annotations

import math
from typing import Optional


class JoineryError(Exception):
    """Base class for every deterministic joinery failure."""

    code = "joinery_error"

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.index = index
        if code is not None:
            self.code = code


class InvalidInput(JoineryError):
    """A required value is missing or unusable."""

    code = "invalid_input"


class IndexOutOfRange(JoineryError):
    """An edge or face index does not exist on the solid."""

    code = "index_out_of_range"


class GeometryPrecondition(JoineryError):
    """Geometry does not satisfy what the operation needs (linear edge, developable face...)."""

    code = "geometry_precondition"


class KernelFailure(JoineryError):
    """The geometry kernel returned nothing for a boolean, unroll or join."""

    code = "kernel_failure"


class ToleranceOutOfPolicy(JoineryError):
    """Scale factor derived from the tolerance is outside the accepted band."""

    code = "tolerance_out_of_policy"


def require_solid(solid, name: str):
    if solid is None:
        raise InvalidInput(f"{name} solid is required")
    return solid


def require_number(value, name: str) -> float:
    if value is None:
        raise InvalidInput(f"{name} is required")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number, got {value!r}") from None


def require_positive(value, name: str) -> float:
    value = require_number(value, name)
    if not math.isfinite(value) or value <= 0:
        raise InvalidInput(f"{name} must be a positive number, got {value}")
    return value


def require_integer(value, name: str) -> int:
    if value is None:
        raise InvalidInput(f"{name} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be an integer, got {value!r}") from None


def check_index(index, count: int, what: str) -> int:
    index = require_integer(index, f"{what} index")
    if index < 0 or index >= count:
        raise IndexOutOfRange(
            f"{what} index {index} out of range (solid has {count} {what}s)",
            index=index,
        )
    return index
