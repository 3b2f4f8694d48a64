"""
2D section profiles for hooked tenons.

A profile is a base rectangle (or any closed curve) with a small step
rectangle sitting on its top edge. The slanted variant adds a ramp triangle
that lets the hook snap into its mortise.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from shapely import affinity
from shapely.geometry import LinearRing, LineString

from strip_joinery.contracts import JoineryResult
from strip_joinery.errors import (
    GeometryPrecondition,
    InvalidInput,
    JoineryError,
    require_positive,
)

logger = logging.getLogger(__name__)


class HookMode(Enum):
    STEP = "step"
    SLANTED = "slanted"


@dataclass
class ExplicitBase:
    """User supplied closed base section."""
    curve: LineString


@dataclass
class DefaultBase:
    """Axis-aligned base rectangle from the origin to (width, height)."""
    width: float = 28.0
    height: float = 10.0


BaseSection = Union[ExplicitBase, DefaultBase]


def rectangle(x0: float, y0: float, x1: float, y1: float) -> LinearRing:
    return LinearRing([(x0, y0), (x1, y0), (x1, y1), (x0, y1)])


def _base_curve(base: BaseSection) -> Tuple[LineString, float, float]:
    """Base curve plus its effective width and height."""
    if isinstance(base, DefaultBase):
        width = require_positive(base.width, "Base width")
        height = require_positive(base.height, "Base height")
        return rectangle(0.0, 0.0, width, height), width, height

    curve = base.curve
    if curve is None:
        raise InvalidInput("Explicit base needs a curve")
    if not curve.is_closed:
        raise GeometryPrecondition("Base curve must be closed")
    minx, miny, maxx, maxy = curve.bounds
    return curve, maxx - minx, maxy - miny


def hook_profile(
    base: Optional[BaseSection] = None,
    step_offset: float = 4.0,
    step_width: float = 4.0,
    step_height: float = 10.0,
    mode: HookMode = HookMode.STEP,
    slant_base: Tuple[float, float] = (16.0, 18.0),
    slope_height: float = 10.0,
    mirror: bool = False,
) -> JoineryResult:
    """Section curves of a hooked tenon.

    Curves come out in order: base, step and (slanted mode only) ramp. With
    ``mirror`` every curve is followed, after the originals, by its
    reflection across x = 0.

    Returns:
        JoineryResult whose value is the list of closed curves.
    """
    if base is None:
        base = DefaultBase()

    try:
        mode = HookMode(mode)
        base_curve, width, height = _base_curve(base)
        step_width = require_positive(step_width, "Step width")
        step_height = require_positive(step_height, "Step height")

        curves: List[LineString] = [
            base_curve,
            rectangle(step_offset, height, step_offset + step_width, height + step_height),
        ]

        if mode is HookMode.SLANTED:
            slope_height = require_positive(slope_height, "Slope height")
            bx, by = slant_base
            if width - bx <= 0:
                raise GeometryPrecondition(
                    f"Slant base x {bx:g} leaves no ramp within base width {width:g}"
                )
            curves.append(LinearRing([(bx, by), (width, by), (bx, by + slope_height)]))
    except (JoineryError, ValueError) as exc:
        if not isinstance(exc, JoineryError):
            exc = InvalidInput(str(exc))
        logger.warning("Hook profile failed: %s", exc)
        return JoineryResult.from_error(exc)

    if mirror:
        curves += [affinity.scale(c, xfact=-1.0, yfact=1.0, origin=(0, 0)) for c in curves]

    logger.debug("Hook profile: %d curves (%s)", len(curves), mode.value)
    return JoineryResult(value=curves)
