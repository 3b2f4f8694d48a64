"""
Complementary slit cuts for two crossing curved strips.

The overlap of the strips, grown about its bounding-box centre, is squashed
along one of its straight edges and shifted half-way up or down that edge.
Strip A loses the upper copy and strip B the lower one, so the two slide
together.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import trimesh

from strip_joinery.contracts import JoineryConfig, JoineryResult
from strip_joinery.edge_frames import frame_from_edge, select_linear_edge
from strip_joinery.errors import JoineryError, KernelFailure, require_solid
from strip_joinery.geometry_primitives import (
    axis_scale_about,
    translation,
    uniform_scale_about,
)
from strip_joinery.kernel import BooleanKind, GeometryKernel, TrimeshKernel
from strip_joinery.mortise_tenon import reduce_pieces, subtract_tools, validate_tolerance

logger = logging.getLogger(__name__)


@dataclass
class SlitPair:
    """Slit strips and the tools that cut them (either strip may be None)."""
    a: Optional[trimesh.Trimesh]
    b: Optional[trimesh.Trimesh]
    positive_tool: trimesh.Trimesh
    negative_tool: trimesh.Trimesh


def _extent_along(solid: trimesh.Trimesh, direction: np.ndarray) -> float:
    d = np.asarray(solid.vertices, dtype=float) @ direction
    return float(d.max() - d.min())


def curved_strip_slits(
    strip_a: trimesh.Trimesh,
    strip_b: trimesh.Trimesh,
    tolerance: float,
    edge_index: int,
    config: Optional[JoineryConfig] = None,
    kernel: Optional[GeometryKernel] = None,
) -> JoineryResult:
    """Cut matching slits into two crossing strips.

    Args:
        strip_a: Strip receiving the slit from the positive side.
        strip_b: Strip receiving the slit from the negative side.
        tolerance: Clearance fraction; 1 + tolerance must be in (1, 2].
        edge_index: Straight edge of the grown overlap that sets the slit axis.

    Returns:
        JoineryResult whose value is a SlitPair, or None when neither strip
        could be cut.
    """
    if config is None:
        config = JoineryConfig()
    if kernel is None:
        kernel = TrimeshKernel()

    result = JoineryResult()
    try:
        factor = validate_tolerance(tolerance, config)
        require_solid(strip_a, "Strip A")
        require_solid(strip_b, "Strip B")

        pieces = kernel.boolean(
            BooleanKind.INTERSECTION, [strip_a, strip_b], precision=config.precision,
        )
        overlap = reduce_pieces(pieces, "Strip intersection", config, result)
        grown = kernel.transform(
            overlap, uniform_scale_about(kernel.bounding_box_center(overlap), factor),
        )

        edge = select_linear_edge(grown, edge_index, config, kernel)
        frame = frame_from_edge(edge, config)
        thin = kernel.transform(
            grown,
            axis_scale_about(frame.origin, frame.z_axis, config.slit_compression),
        )
    except JoineryError as exc:
        logger.warning("Strip slits failed: %s", exc)
        return JoineryResult.from_error(exc, result.diagnostics)

    d = edge.direction
    offset = config.slit_offset_factor * edge.length
    positive_tool = kernel.transform(thin, translation(d * offset))
    negative_tool = kernel.transform(thin, translation(-d * offset))

    half_extent = _extent_along(thin, d) / 2.0
    if offset < half_extent - config.precision:
        result.warn(
            "slit_tools_overlap",
            f"Slit offset {offset:.4g} is less than half the tool extent "
            f"{half_extent:.4g}; the two tools overlap",
        )

    carved = {}
    for name, strip, tool in (("A", strip_a, positive_tool), ("B", strip_b, negative_tool)):
        try:
            carved[name] = subtract_tools(
                strip, [tool], f"Slit in strip {name}", config, kernel, result,
            )
        except JoineryError as exc:
            logger.warning("Slit in strip %s failed: %s", name, exc)
            result.warn(exc.code, f"Strip {name}: slit carve failed: {exc}")
            carved[name] = None

    if carved["A"] is None and carved["B"] is None:
        return JoineryResult.from_error(
            KernelFailure("Neither strip could be slit"), result.diagnostics,
        )

    logger.info(
        "Strip slits on edge %d: length %.2f, offset %.2f", edge.index, edge.length, offset,
    )
    result.value = SlitPair(
        a=carved["A"],
        b=carved["B"],
        positive_tool=positive_tool,
        negative_tool=negative_tool,
    )
    return result
