"""
Mortise and tenon joints for several vertical strips entering one horizontal strip.

Every vertical strip gets mirrored cutters on edges (edge_index, edge_index + 1).
All cutters go into one shared tool set; each strip is carved against the whole
set, each tenon is grown against the horizontal strip, and the horizontal strip
is cut once with every grown tool.

Per-strip failures degrade the output (warnings); only problems that leave
nothing to cut are fatal.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import trimesh

from strip_joinery.contracts import JoineryConfig, JoineryResult
from strip_joinery.errors import (
    InvalidInput,
    JoineryError,
    KernelFailure,
    require_integer,
    require_positive,
    require_solid,
)
from strip_joinery.geometry_primitives import Plane
from strip_joinery.joint_boxes import resolve_mirror_plane
from strip_joinery.kernel import GeometryKernel, TrimeshKernel
from strip_joinery.mortise_tenon import (
    carve_mortise,
    carve_tenon,
    edge_cutters,
    grow_intersection,
    validate_tolerance,
)

logger = logging.getLogger(__name__)


@dataclass
class MultiStripJoints:
    """Mortised horizontal strip plus the surviving tenons.

    ``tenon_indices[i]`` is the position in the input list of ``tenons[i]``;
    ``dropped`` lists the strips whose carve failed.
    """
    mortise: trimesh.Trimesh
    tenons: List[trimesh.Trimesh] = field(default_factory=list)
    tenon_indices: List[int] = field(default_factory=list)
    dropped: List[int] = field(default_factory=list)


def multi_strip_joints(
    horizontal: trimesh.Trimesh,
    verticals: Sequence[trimesh.Trimesh],
    thickness: float,
    tolerance: float,
    edge_index: int,
    mirror_plane: Optional[Plane] = None,
    centroid=None,
    config: Optional[JoineryConfig] = None,
    kernel: Optional[GeometryKernel] = None,
) -> JoineryResult:
    """Join N vertical strips to one horizontal strip.

    Returns:
        JoineryResult whose value is a MultiStripJoints, or None when nothing
        could be cut.
    """
    if config is None:
        config = JoineryConfig()
    if kernel is None:
        kernel = TrimeshKernel()

    result = JoineryResult()
    try:
        require_solid(horizontal, "Horizontal")
        if not verticals:
            raise InvalidInput("At least one vertical strip is required")
        thickness = require_positive(thickness, "Thickness")
        validate_tolerance(tolerance, config)
        first = require_integer(edge_index, "Edge index")
        plane = resolve_mirror_plane(mirror_plane, centroid)
    except JoineryError as exc:
        return JoineryResult.from_error(exc)

    indices = (first, first + 1)

    # 1. Shared cutter set
    cutters: List[trimesh.Trimesh] = []
    for i, vertical in enumerate(verticals):
        if vertical is None:
            continue
        try:
            cutters.extend(edge_cutters(vertical, indices, thickness, plane, config, kernel))
        except JoineryError as exc:
            logger.warning("Strip %d: no joint boxes (%s)", i, exc)
            result.warn(exc.code, f"Strip {i}: joint boxes skipped: {exc}", index=i)

    # 2. Tenons
    tenons: List[trimesh.Trimesh] = []
    tenon_indices: List[int] = []
    dropped: List[int] = []
    for i, vertical in enumerate(verticals):
        try:
            require_solid(vertical, f"Vertical {i}")
            tenons.append(carve_tenon(vertical, cutters, config, kernel, result, i))
            tenon_indices.append(i)
        except JoineryError as exc:
            logger.warning("Strip %d dropped: %s", i, exc)
            result.warn(exc.code, f"Strip {i} dropped: {exc}", index=i)
            dropped.append(i)

    # 3. Grown tools
    tools: List[trimesh.Trimesh] = []
    for i, tenon in zip(tenon_indices, tenons):
        try:
            tools.append(grow_intersection(horizontal, tenon, tolerance, config, kernel, result, i))
        except JoineryError as exc:
            logger.warning("Strip %d adds no mortise tool: %s", i, exc)
            result.warn(exc.code, f"Strip {i}: no mortise tool: {exc}", index=i)

    # 4. One mortise pass
    try:
        if not tools:
            raise KernelFailure("No strip produced a mortise tool")
        mortise = carve_mortise(horizontal, tools, config, kernel, result)
    except JoineryError as exc:
        return JoineryResult.from_error(exc, result.diagnostics)

    logger.info(
        "Multi-strip joints: %d tenons, %d dropped, %d mortise tools",
        len(tenons), len(dropped), len(tools),
    )
    result.value = MultiStripJoints(
        mortise=mortise,
        tenons=tenons,
        tenon_indices=tenon_indices,
        dropped=dropped,
    )
    return result
