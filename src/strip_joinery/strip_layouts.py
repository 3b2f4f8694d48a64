"""
Flat fabrication layouts for strips.

``project_layouts`` lays a vertical/horizontal pair down on a plane by
projecting their edges; ``unroll_strip`` develops one face of a curved strip
into its flat outline.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import trimesh
from shapely.geometry import LineString, MultiLineString, Polygon

from strip_joinery.contracts import JoineryConfig, JoineryResult
from strip_joinery.errors import (
    JoineryError,
    KernelFailure,
    check_index,
    require_solid,
)
from strip_joinery.geometry_primitives import Plane, rotation_about
from strip_joinery.kernel import GeometryKernel, TrimeshKernel

logger = logging.getLogger(__name__)


@dataclass
class CurveSet:
    """Joined 2D curves of one solid; ``open`` holds whatever did not close."""
    closed: List[LineString] = field(default_factory=list)
    open: List[LineString] = field(default_factory=list)

    @property
    def curves(self) -> List[LineString]:
        return list(self.closed) + list(self.open)

    def __len__(self) -> int:
        return len(self.closed) + len(self.open)

    @classmethod
    def from_curves(cls, curves) -> "CurveSet":
        """Sort loose curves into closed and open."""
        curves = list(curves)
        return cls(
            closed=[c for c in curves if c.is_closed],
            open=[c for c in curves if not c.is_closed],
        )

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy) over all curves; zeros when empty."""
        if not len(self):
            return (0.0, 0.0, 0.0, 0.0)
        return MultiLineString([list(c.coords) for c in self.curves]).bounds


@dataclass
class StripLayout:
    vertical: CurveSet
    horizontal: CurveSet


def projected_curves(
    solid: trimesh.Trimesh,
    plane: Plane,
    config: JoineryConfig,
    kernel: GeometryKernel,
) -> CurveSet:
    """Project every edge of ``solid`` onto ``plane`` and join the result."""
    segments = []
    for edge in kernel.edges(solid, precision=config.precision):
        flat = plane.project(edge.points)
        if len(flat) >= 2:
            segments.append(LineString(flat))
    closed, open_ = kernel.join_curves(segments, precision=config.precision)
    return CurveSet(closed=closed, open=open_)


def project_layouts(
    vertical: trimesh.Trimesh,
    horizontal: trimesh.Trimesh,
    plane: Optional[Plane] = None,
    config: Optional[JoineryConfig] = None,
    kernel: Optional[GeometryKernel] = None,
) -> JoineryResult:
    """Flat outlines of a vertical strip (turned down flat) and a horizontal strip.

    The vertical strip is rotated about its volume centroid before
    projection; the inputs are not modified.

    Returns:
        JoineryResult whose value is a StripLayout.
    """
    if config is None:
        config = JoineryConfig()
    if kernel is None:
        kernel = TrimeshKernel()
    if plane is None:
        plane = Plane.world_xy()

    result = JoineryResult()
    try:
        require_solid(vertical, "Vertical")
        require_solid(horizontal, "Horizontal")
        centroid = kernel.volume_centroid(vertical)
        turned = kernel.transform(
            vertical,
            rotation_about(centroid, config.layout_rotation_axis, config.layout_rotation_deg),
        )
        layout = StripLayout(
            vertical=projected_curves(turned, plane, config, kernel),
            horizontal=projected_curves(horizontal, plane, config, kernel),
        )
    except JoineryError as exc:
        logger.warning("Layout projection failed: %s", exc)
        return JoineryResult.from_error(exc)

    for name, curves in (("vertical", layout.vertical), ("horizontal", layout.horizontal)):
        if curves.open:
            result.warn(
                "unjoined_curves",
                f"{len(curves.open)} {name} curve(s) did not join into closed outlines",
            )

    logger.info(
        "Layouts: vertical %d closed / %d open, horizontal %d closed / %d open",
        len(layout.vertical.closed), len(layout.vertical.open),
        len(layout.horizontal.closed), len(layout.horizontal.open),
    )
    result.value = layout
    return result


def unroll_strip(
    solid: trimesh.Trimesh,
    face_index: int,
    config: Optional[JoineryConfig] = None,
    kernel: Optional[GeometryKernel] = None,
) -> JoineryResult:
    """Flat outline of face ``face_index`` of a developable strip.

    Returns:
        JoineryResult whose value is the closed outline (a LineString), or
        None with one of the codes invalid_input, index_out_of_range,
        geometry_precondition, unroll_empty or join_failed.
    """
    if config is None:
        config = JoineryConfig()
    if kernel is None:
        kernel = TrimeshKernel()

    result = JoineryResult()
    try:
        require_solid(solid, "Input")
        faces = kernel.faces(solid, precision=config.precision)
        face = faces[check_index(face_index, len(faces), "face")]

        flats = kernel.unroll(face, precision=config.precision)
        if not flats:
            raise KernelFailure("Unroll failed", index=face.index, code="unroll_empty")

        segments = kernel.boundary_segments(flats[0])
        closed, open_ = kernel.join_curves(segments, precision=config.precision)
        if not closed:
            raise KernelFailure("Edge joining failed", index=face.index, code="join_failed")
    except JoineryError as exc:
        logger.warning("Unroll of face %s failed: %s", face_index, exc)
        return JoineryResult.from_error(exc)

    closed.sort(key=lambda ring: Polygon(ring.coords).area, reverse=True)
    if len(closed) > 1 or open_:
        result.warn(
            "extra_curves",
            f"Unrolled face {face.index} has {len(closed) - 1 + len(open_)} curve(s) "
            f"besides its outline",
            index=face.index,
        )

    logger.info("Unrolled face %d: outline length %.2f", face.index, closed[0].length)
    result.value = closed[0]
    return result
