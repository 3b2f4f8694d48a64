"""
Mortise and tenon joints between two planar strips.

Pipeline for one pair (vertical strip into horizontal strip):
1. Frame at the midpoint of each chosen edge of the vertical strip
2. Cube cutter on that frame plus its mirror across the shared plane
3. Tenon = vertical strip minus all cutters
4. Intersection of the horizontal strip and the tenon, grown about its
   volume centroid by (1 + tolerance) for clearance
5. Mortise = horizontal strip minus the grown intersection
"""
import logging
import math
import numbers
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import trimesh

from strip_joinery.contracts import JoineryConfig, JoineryResult, PiecePolicy
from strip_joinery.edge_frames import build_edge_frame
from strip_joinery.errors import (
    InvalidInput,
    JoineryError,
    KernelFailure,
    ToleranceOutOfPolicy,
    require_number,
    require_positive,
    require_solid,
)
from strip_joinery.geometry_primitives import Plane, uniform_scale_about
from strip_joinery.joint_boxes import boxes_to_solids, build_joint_boxes, resolve_mirror_plane
from strip_joinery.kernel import BooleanKind, GeometryKernel, TrimeshKernel

logger = logging.getLogger(__name__)


@dataclass
class MortiseTenonPair:
    """Mated result of one joint operation."""
    mortise: trimesh.Trimesh
    tenon: trimesh.Trimesh


def validate_tolerance(tolerance, config: JoineryConfig) -> float:
    """Return the scale factor 1 + tolerance, or raise if outside (min, max]."""
    tolerance = require_number(tolerance, "Tolerance")
    factor = 1.0 + tolerance
    if not math.isfinite(factor) or not (
        config.min_scale_factor < factor <= config.max_scale_factor
    ):
        raise ToleranceOutOfPolicy(
            f"Scale factor {factor:g} from tolerance {tolerance:g} is outside "
            f"({config.min_scale_factor:g}, {config.max_scale_factor:g}]"
        )
    return factor


def reduce_pieces(
    pieces: List[trimesh.Trimesh],
    what: str,
    config: JoineryConfig,
    result: Optional[JoineryResult] = None,
    index: Optional[int] = None,
) -> trimesh.Trimesh:
    """Reduce a boolean result to one solid according to the piece policy.

    Discarded pieces are logged and, when ``result`` is given, recorded on it
    as a ``pieces_discarded`` warning.
    """
    if not pieces:
        raise KernelFailure(f"{what} returned no result")
    if config.piece_policy is PiecePolicy.LARGEST:
        kept = max(pieces, key=lambda p: abs(float(p.volume)))
    else:
        kept = pieces[0]
    if len(pieces) > 1:
        discarded = len(pieces) - 1
        message = (
            f"{what} split into {len(pieces)} pieces; kept one "
            f"({config.piece_policy.value} policy), discarded {discarded}"
        )
        logger.warning("%s", message)
        if result is not None:
            result.warn("pieces_discarded", message, index=index)
    return kept


def subtract_tools(
    target: trimesh.Trimesh,
    tools: Sequence[trimesh.Trimesh],
    what: str,
    config: JoineryConfig,
    kernel: GeometryKernel,
    result: Optional[JoineryResult] = None,
    index: Optional[int] = None,
) -> trimesh.Trimesh:
    require_solid(target, what)
    pieces = kernel.boolean(
        BooleanKind.DIFFERENCE, [target] + list(tools), precision=config.precision,
    )
    return reduce_pieces(pieces, what, config, result, index)


def carve_tenon(
    target: trimesh.Trimesh,
    cutters: Sequence[trimesh.Trimesh],
    config: Optional[JoineryConfig] = None,
    kernel: Optional[GeometryKernel] = None,
    result: Optional[JoineryResult] = None,
    index: Optional[int] = None,
) -> trimesh.Trimesh:
    """Tenon = target minus the union of all cutting solids."""
    if config is None:
        config = JoineryConfig()
    if kernel is None:
        kernel = TrimeshKernel()
    return subtract_tools(target, cutters, "Tenon carve", config, kernel, result, index)


def carve_mortise(
    target: trimesh.Trimesh,
    tools: Sequence[trimesh.Trimesh],
    config: Optional[JoineryConfig] = None,
    kernel: Optional[GeometryKernel] = None,
    result: Optional[JoineryResult] = None,
) -> trimesh.Trimesh:
    """Mortise = target minus the union of all grown tools.

    A tool that reaches across the whole target splits it; the piece policy
    picks what is kept and the loss is reported on ``result``.
    """
    if config is None:
        config = JoineryConfig()
    if kernel is None:
        kernel = TrimeshKernel()
    return subtract_tools(target, tools, "Mortise carve", config, kernel, result)


def grow_intersection(
    solid_a: trimesh.Trimesh,
    solid_b: trimesh.Trimesh,
    tolerance: float,
    config: Optional[JoineryConfig] = None,
    kernel: Optional[GeometryKernel] = None,
    result: Optional[JoineryResult] = None,
    index: Optional[int] = None,
) -> trimesh.Trimesh:
    """Intersection of two solids grown about its volume centroid.

    The tolerance is checked before any kernel call: an oversized growth would
    cut through the outer wall of the receiving strip.

    Raises:
        ToleranceOutOfPolicy: 1 + tolerance outside the accepted band.
        KernelFailure: the solids do not overlap.
        GeometryPrecondition: the overlap has no volume centroid.
    """
    if config is None:
        config = JoineryConfig()
    if kernel is None:
        kernel = TrimeshKernel()

    factor = validate_tolerance(tolerance, config)
    require_solid(solid_a, "First")
    require_solid(solid_b, "Second")

    pieces = kernel.boolean(
        BooleanKind.INTERSECTION, [solid_a, solid_b], precision=config.precision,
    )
    overlap = reduce_pieces(pieces, "Intersection", config, result, index)
    centroid = kernel.volume_centroid(overlap)
    return kernel.transform(overlap, uniform_scale_about(centroid, factor))


def edge_cutters(
    vertical: trimesh.Trimesh,
    edge_indices: Sequence[int],
    thickness: float,
    mirror_plane: Plane,
    config: JoineryConfig,
    kernel: GeometryKernel,
) -> List[trimesh.Trimesh]:
    """Mirrored cube cutters for each listed edge of ``vertical``."""
    cutters: List[trimesh.Trimesh] = []
    for index in edge_indices:
        frame = build_edge_frame(vertical, index, config, kernel)
        cutters.extend(
            boxes_to_solids(build_joint_boxes(frame, thickness, mirror_plane), kernel)
        )
    return cutters


def as_index_list(edge_indices: Union[int, Sequence[int]]) -> List[int]:
    if edge_indices is None:
        raise InvalidInput("Edge index is required")
    if isinstance(edge_indices, numbers.Integral):
        return [int(edge_indices)]
    try:
        indices = [int(i) for i in edge_indices]
    except (TypeError, ValueError):
        raise InvalidInput(f"Edge indices must be integers, got {edge_indices!r}") from None
    if not indices:
        raise InvalidInput("At least one edge index is required")
    return indices


def mortise_and_tenon(
    horizontal: trimesh.Trimesh,
    vertical: trimesh.Trimesh,
    thickness: float,
    tolerance: float,
    edge_indices: Union[int, Sequence[int]],
    mirror_plane: Optional[Plane] = None,
    centroid=None,
    config: Optional[JoineryConfig] = None,
    kernel: Optional[GeometryKernel] = None,
) -> JoineryResult:
    """Mortise and tenon for one vertical strip entering one horizontal strip.

    Args:
        horizontal: Strip receiving the mortise.
        vertical: Strip carved into the tenon.
        thickness: Edge length of the cube cutters.
        tolerance: Clearance fraction; 1 + tolerance must be in (1, 2].
        edge_indices: Edge (or edges) of ``vertical`` carrying the cutters.
        mirror_plane: Plane the cutters are mirrored across. Defaults to the
            world XZ plane.
        centroid: Anchor for the mirror plane. Defaults to the vertical
            strip's volume centroid when no plane is given either.

    Returns:
        JoineryResult whose value is a MortiseTenonPair, or None on failure.
        A grown tool that reaches across the horizontal strip splits it; one
        piece is kept and a ``pieces_discarded`` warning is added.
    """
    if config is None:
        config = JoineryConfig()
    if kernel is None:
        kernel = TrimeshKernel()

    result = JoineryResult()
    try:
        require_solid(horizontal, "Horizontal")
        require_solid(vertical, "Vertical")
        thickness = require_positive(thickness, "Thickness")
        validate_tolerance(tolerance, config)
        indices = as_index_list(edge_indices)

        if mirror_plane is None and centroid is None:
            centroid = kernel.volume_centroid(vertical)
        plane = resolve_mirror_plane(mirror_plane, centroid)

        cutters = edge_cutters(vertical, indices, thickness, plane, config, kernel)
        tenon = carve_tenon(vertical, cutters, config, kernel, result)
        grown = grow_intersection(horizontal, tenon, tolerance, config, kernel, result)
        mortise = carve_mortise(horizontal, [grown], config, kernel, result)
    except JoineryError as exc:
        logger.warning("Mortise and tenon failed: %s", exc)
        return JoineryResult.from_error(exc, result.diagnostics)

    logger.info(
        "Mortise and tenon: tenon %.1f mm3, mortise %.1f mm3",
        tenon.volume, mortise.volume,
    )
    result.value = MortiseTenonPair(mortise=mortise, tenon=tenon)
    return result
