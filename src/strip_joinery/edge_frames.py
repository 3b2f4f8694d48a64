"""
Edge-local frames for joint placement.

A frame sits at the arc-length midpoint of a straight edge with the edge
tangent as its primary direction. The two remaining axes come from world-up
(or a fallback axis when the edge is vertical) and are re-orthogonalised so
the result is exactly orthonormal on either branch.
"""
import logging
from typing import Optional

import numpy as np

from strip_joinery.contracts import JoineryConfig
from strip_joinery.errors import GeometryPrecondition, check_index, require_solid
from strip_joinery.geometry_primitives import Edge, Frame, unit
from strip_joinery.kernel import GeometryKernel, TrimeshKernel

logger = logging.getLogger(__name__)


def select_linear_edge(
    solid,
    edge_index: int,
    config: JoineryConfig,
    kernel: GeometryKernel,
) -> Edge:
    """Look up an edge by index and require it to be straight."""
    require_solid(solid, "Edge source")
    edges = kernel.edges(solid, precision=config.precision)
    edge = edges[check_index(edge_index, len(edges), "edge")]
    if not edge.is_linear(config.precision):
        raise GeometryPrecondition(
            f"Edge {edge.index} is not linear", index=edge.index,
        )
    return edge


def frame_from_edge(edge: Edge, config: Optional[JoineryConfig] = None) -> Frame:
    """Build the orthonormal frame at the midpoint of a straight edge."""
    if config is None:
        config = JoineryConfig()

    half = edge.length / 2.0
    origin = edge.point_at_length(half)
    tangent = unit(edge.tangent_at_length(half))

    up = np.asarray(config.world_up, dtype=float)
    right = np.cross(tangent, up)
    if np.linalg.norm(right) < config.tiny_vector:
        logger.debug("Edge %d parallel to world up, using fallback axis", edge.index)
        up = np.asarray(config.fallback_up, dtype=float)
        right = np.cross(tangent, up)
        if np.linalg.norm(right) < config.tiny_vector:
            raise GeometryPrecondition(
                f"Edge {edge.index} is parallel to both reference axes",
                index=edge.index,
            )

    right = unit(right)
    up = unit(np.cross(right, tangent))
    return Frame(origin=origin, x_axis=right, y_axis=up)


def build_edge_frame(
    solid,
    edge_index: int,
    config: Optional[JoineryConfig] = None,
    kernel: Optional[GeometryKernel] = None,
) -> Frame:
    """Frame at the midpoint of edge ``edge_index`` of ``solid``.

    Raises:
        IndexOutOfRange: the solid has no such edge.
        GeometryPrecondition: the edge is not straight.
    """
    if config is None:
        config = JoineryConfig()
    if kernel is None:
        kernel = TrimeshKernel()

    edge = select_linear_edge(solid, edge_index, config, kernel)
    return frame_from_edge(edge, config)
