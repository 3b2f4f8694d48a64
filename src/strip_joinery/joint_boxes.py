"""
Mirrored cutting boxes for mortise and tenon joints.

Every box is a cube of edge ``thickness`` (half-extent ``thickness / 2`` on
all three axes) centred on an edge frame. The single-pair and multi-strip
pipelines share this one convention.
"""
import logging
from typing import List, Optional, Tuple

from strip_joinery.errors import InvalidInput, require_positive
from strip_joinery.geometry_primitives import Box, Frame, Plane

logger = logging.getLogger(__name__)


def build_joint_boxes(
    frame: Frame,
    thickness: float,
    mirror_plane: Plane,
) -> Tuple[Box, Box]:
    """Box centred on ``frame`` plus its mirror image across ``mirror_plane``.

    The order of the pair carries no meaning; both are used as one tool set.
    """
    thickness = require_positive(thickness, "Thickness")
    if mirror_plane is None:
        raise InvalidInput("Mirror plane is required")

    box = Box.centered(frame, thickness / 2.0)
    mirrored = box.transformed(mirror_plane.mirror_matrix())
    logger.debug(
        "Joint box at %s mirrored to %s",
        box.center.round(3).tolist(), mirrored.center.round(3).tolist(),
    )
    return box, mirrored


def resolve_mirror_plane(
    mirror_plane: Optional[Plane],
    centroid=None,
) -> Plane:
    """Shared mirror plane from an optional plane and reference centroid.

    A supplied centroid anchors the plane; with no plane the world XZ plane
    through the centroid is used.
    """
    if mirror_plane is None and centroid is None:
        raise InvalidInput("A mirror plane or a reference centroid is required")
    if mirror_plane is None:
        return Plane.world_xz(centroid)
    if centroid is None:
        return mirror_plane
    return mirror_plane.at(centroid)


def boxes_to_solids(boxes, kernel) -> List:
    return [kernel.box_solid(box) for box in boxes]
