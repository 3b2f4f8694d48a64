"""
Geometry kernel contract and its trimesh implementation.

Joinery modules only talk to ``GeometryKernel``. ``TrimeshKernel`` backs it
with ``trimesh.Trimesh`` solids: booleans are dispatched through
:mod:`trimesh.boolean` (manifold3d engine by default), B-rep style edges and
faces are recovered from sharp dihedral angles, developable faces are
unfolded triangle by triangle, and 2D curves are joined with shapely.

Every call that depends on a model tolerance takes it as ``precision``.
"""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import trimesh
from shapely.geometry import LineString
from shapely.ops import linemerge, unary_union

from strip_joinery.errors import GeometryPrecondition, KernelFailure
from strip_joinery.geometry_primitives import Box, Edge, Face

logger = logging.getLogger(__name__)

Curves = List[LineString]


class BooleanKind(Enum):
    UNION = "union"
    INTERSECTION = "intersection"
    DIFFERENCE = "difference"


def precision_decimals(precision: float) -> int:
    """Rounding digits matching a model tolerance (0.001 -> 3)."""
    return max(0, int(math.ceil(-math.log10(precision) - 1e-9)))


class GeometryKernel(ABC):
    """Boolean, mass-property, topology and flattening services."""

    @abstractmethod
    def boolean(
        self,
        kind: BooleanKind,
        solids: Sequence[trimesh.Trimesh],
        precision: float,
    ) -> List[trimesh.Trimesh]:
        """Union/intersection of all solids, or the first minus the rest.

        An empty list means no overlap or a degenerate configuration.
        """

    @abstractmethod
    def volume_centroid(self, solid: trimesh.Trimesh) -> np.ndarray:
        """Centre of mass; raises GeometryPrecondition for non-volumes."""

    @abstractmethod
    def bounding_box_center(self, solid: trimesh.Trimesh) -> np.ndarray:
        """Centre of the axis-aligned bounding box."""

    @abstractmethod
    def edges(self, solid: trimesh.Trimesh, precision: float) -> List[Edge]:
        """B-rep style edges in a deterministic order."""

    @abstractmethod
    def faces(self, solid: trimesh.Trimesh, precision: float) -> List[Face]:
        """Smooth surface regions in a deterministic order."""

    @abstractmethod
    def transform(self, solid: trimesh.Trimesh, matrix: np.ndarray) -> trimesh.Trimesh:
        """Transformed copy; the input is left untouched."""

    @abstractmethod
    def box_solid(self, box: Box) -> trimesh.Trimesh:
        """Closed solid for a Box."""

    @abstractmethod
    def unroll(self, face: Face, precision: float) -> List[trimesh.Trimesh]:
        """Flatten a developable face into the z = 0 plane."""

    @abstractmethod
    def boundary_segments(self, flat: trimesh.Trimesh) -> Curves:
        """Open boundary of a flat mesh as 2D segments."""

    @abstractmethod
    def join_curves(self, curves: Curves, precision: float) -> Tuple[Curves, Curves]:
        """Join 2D curves; returns ``(closed, open)``."""


class TrimeshKernel(GeometryKernel):
    """GeometryKernel on trimesh meshes.

    Args:
        engine: trimesh boolean backend ("manifold" needs manifold3d).
        sharp_angle_deg: dihedral angle above which a mesh edge is a B-rep edge.
    """

    def __init__(self, engine: Optional[str] = "manifold", sharp_angle_deg: float = 20.0):
        self.engine = engine
        self.sharp_angle = math.radians(sharp_angle_deg)

    # ─── Booleans and mass properties ────────────────────────────────────────

    def boolean(self, kind, solids, precision):
        solids = [s for s in solids if s is not None]
        if kind is BooleanKind.DIFFERENCE:
            if not solids or solids[0].is_empty:
                return []
            operands = [solids[0]] + [s for s in solids[1:] if not s.is_empty]
            op = trimesh.boolean.difference
        elif kind is BooleanKind.INTERSECTION:
            if not solids or any(s.is_empty for s in solids):
                return []
            operands = solids
            op = trimesh.boolean.intersection
        else:
            operands = [s for s in solids if not s.is_empty]
            if not operands:
                return []
            op = trimesh.boolean.union

        if len(operands) == 1:
            return self._pieces(operands[0].copy(), precision)

        try:
            result = op(operands, engine=self.engine, check_volume=False)
        except Exception as exc:
            raise KernelFailure(f"trimesh {kind.value} failed: {exc}") from exc

        if result is None or result.is_empty:
            logger.debug("Boolean %s returned an empty mesh", kind.value)
            return []
        return self._pieces(result, precision)

    @staticmethod
    def _pieces(mesh: trimesh.Trimesh, precision: float) -> List[trimesh.Trimesh]:
        """Split into disjoint bodies, dropping slivers below precision^3."""
        pieces = list(mesh.split(only_watertight=False)) or [mesh]
        min_volume = precision ** 3
        return [p for p in pieces if abs(float(p.volume)) > min_volume]

    def volume_centroid(self, solid):
        if solid is None or solid.is_empty or not solid.is_volume:
            raise GeometryPrecondition(
                "Volume centroid undefined: solid is not a closed volume"
            )
        return np.asarray(solid.center_mass, dtype=float)

    def bounding_box_center(self, solid):
        return np.asarray(solid.bounds, dtype=float).mean(axis=0)

    # ─── Topology ────────────────────────────────────────────────────────────

    def edges(self, solid, precision):
        if solid is None or solid.is_empty:
            return []
        decimals = precision_decimals(precision)

        edges: List[Edge] = []
        for chain, closed in _chain_segments(self._sharp_segments(solid)):
            points = _canonical_points(solid.vertices[chain], closed, decimals)
            edges.append(Edge(index=-1, points=points, closed=closed))

        edges.sort(key=lambda e: tuple(np.round(e.midpoint, decimals)))
        for i, edge in enumerate(edges):
            edge.index = i
        return edges

    def _sharp_segments(self, solid: trimesh.Trimesh) -> np.ndarray:
        """Vertex pairs of sharp or open mesh edges."""
        sharp = solid.face_adjacency_angles > self.sharp_angle
        segments = [solid.face_adjacency_edges[sharp]]
        open_rows = trimesh.grouping.group_rows(solid.edges_sorted, require_count=1)
        if len(open_rows):
            segments.append(solid.edges_sorted[open_rows])
        stacked = np.sort(np.vstack(segments).astype(np.int64), axis=1)
        if len(stacked) == 0:
            return stacked.reshape((0, 2))
        return np.unique(stacked, axis=0)

    def faces(self, solid, precision):
        if solid is None or solid.is_empty:
            return []
        decimals = precision_decimals(precision)
        smooth = solid.face_adjacency_angles <= self.sharp_angle
        groups = trimesh.graph.connected_components(
            solid.face_adjacency[smooth],
            nodes=np.arange(len(solid.faces)),
            min_len=1,
        )

        faces: List[Face] = []
        keys = []
        for ids in groups:
            ids = np.sort(np.asarray(ids, dtype=np.int64))
            areas = solid.area_faces[ids]
            area = float(areas.sum())
            centre = (solid.triangles_center[ids] * areas[:, None]).sum(axis=0) / max(area, 1e-300)
            faces.append(Face(
                index=-1,
                face_ids=ids,
                mesh=solid.submesh([ids], append=True),
                area=area,
            ))
            keys.append(tuple(np.round(centre, decimals)))

        order = sorted(range(len(faces)), key=lambda i: keys[i])
        faces = [faces[i] for i in order]
        for i, face in enumerate(faces):
            face.index = i
        return faces

    # ─── Transforms ──────────────────────────────────────────────────────────

    def transform(self, solid, matrix):
        out = solid.copy()
        out.apply_transform(np.asarray(matrix, dtype=float))
        return out

    def box_solid(self, box):
        mesh = trimesh.creation.box(extents=box.extents)
        mesh.apply_transform(box.placement_matrix())
        return mesh

    # ─── Flattening and curves ───────────────────────────────────────────────

    def unroll(self, face, precision):
        mesh = face.mesh
        if mesh is None or mesh.is_empty:
            return []
        vertices = np.asarray(mesh.vertices, dtype=float)
        tris = np.asarray(mesh.faces, dtype=np.int64)
        tol = max(precision, 1e-9 * float(mesh.scale))

        neighbours: Dict[int, List[int]] = defaultdict(list)
        for fa, fb in mesh.face_adjacency:
            neighbours[int(fa)].append(int(fb))
            neighbours[int(fb)].append(int(fa))

        flat = np.full((len(vertices), 2), np.nan)
        a, b, c = tris[0]
        flat[a] = (0.0, 0.0)
        flat[b] = (float(np.linalg.norm(vertices[b] - vertices[a])), 0.0)
        flat[c] = _apex(flat[a], flat[b], vertices[c] - vertices[a], vertices[c] - vertices[b])

        placed = np.zeros(len(tris), dtype=bool)
        placed[0] = True
        queue = deque([0])
        while queue:
            current = queue.popleft()
            for other in neighbours[current]:
                if placed[other]:
                    continue
                i, j, k = _rotate_to_new_vertex(tris[other], tris[current])
                position = _apex(flat[i], flat[j], vertices[k] - vertices[i], vertices[k] - vertices[j])
                if np.isnan(flat[k]).any():
                    flat[k] = position
                elif np.linalg.norm(flat[k] - position) > tol:
                    raise GeometryPrecondition(
                        f"Face {face.index} is not developable (unfold mismatch "
                        f"{np.linalg.norm(flat[k] - position):.4g})",
                        index=face.index,
                    )
                placed[other] = True
                queue.append(other)

        if not placed.all():
            raise GeometryPrecondition(
                f"Face {face.index} is not a single connected surface",
                index=face.index,
            )

        flat_vertices = np.column_stack([flat, np.zeros(len(flat))])
        return [trimesh.Trimesh(vertices=flat_vertices, faces=tris.copy(), process=False)]

    def boundary_segments(self, flat):
        rows = trimesh.grouping.group_rows(flat.edges_sorted, require_count=1)
        points = np.asarray(flat.vertices)[:, :2]
        return [LineString(points[pair]) for pair in flat.edges_sorted[rows]]

    def join_curves(self, curves, precision):
        decimals = precision_decimals(precision)
        # Rounded points key the dedupe; output keeps the first original point per key
        snapped: Dict[Tuple[float, float], Tuple[float, float]] = {}
        seen = set()
        lines: List[LineString] = []
        for curve in curves:
            coords = np.asarray(curve.coords, dtype=float)[:, :2]
            keys = [tuple(k) for k in np.round(coords, decimals).tolist()]
            for point, key in zip(coords, keys):
                snapped.setdefault(key, (float(point[0]), float(point[1])))
            for kp, kq in zip(keys[:-1], keys[1:]):
                if kp == kq:
                    continue
                key = tuple(sorted((kp, kq)))
                if key in seen:
                    continue
                seen.add(key)
                lines.append(LineString([snapped[kp], snapped[kq]]))
        if not lines:
            return [], []

        noded = unary_union(lines)
        parts = list(noded.geoms) if hasattr(noded, "geoms") else [noded]
        merged = linemerge([p for p in parts if p.geom_type == "LineString"])
        joined = list(merged.geoms) if hasattr(merged, "geoms") else [merged]

        closed = [g for g in joined if not g.is_empty and g.is_closed and len(g.coords) >= 4]
        open_ = [g for g in joined if not g.is_empty and not (g.is_closed and len(g.coords) >= 4)]
        return closed, open_


# ─── Internal helpers ────────────────────────────────────────────────────────

def _chain_segments(segments: np.ndarray) -> List[Tuple[List[int], bool]]:
    """Join vertex-pair segments into chains through vertices of degree two.

    Returns ``(vertex_indices, closed)`` tuples; closed chains repeat their
    first vertex at the end.
    """
    neighbours: Dict[int, List[int]] = defaultdict(list)
    for a, b in segments:
        neighbours[int(a)].append(int(b))
        neighbours[int(b)].append(int(a))

    def key(p: int, q: int) -> Tuple[int, int]:
        return (p, q) if p < q else (q, p)

    used = set()
    chains: List[Tuple[List[int], bool]] = []

    for start in sorted(v for v, n in neighbours.items() if len(n) != 2):
        for nxt in neighbours[start]:
            if key(start, nxt) in used:
                continue
            used.add(key(start, nxt))
            chain = [start]
            prev, cur = start, nxt
            while True:
                chain.append(cur)
                if len(neighbours[cur]) != 2:
                    break
                n0, n1 = neighbours[cur]
                following = n1 if n0 == prev else n0
                if key(cur, following) in used:
                    break
                used.add(key(cur, following))
                prev, cur = cur, following
            chains.append((chain, False))

    # Whatever is left are loops made only of degree-two vertices
    for a, b in segments:
        a, b = int(a), int(b)
        if key(a, b) in used:
            continue
        used.add(key(a, b))
        chain = [a]
        prev, cur = a, b
        while cur != a:
            chain.append(cur)
            n0, n1 = neighbours[cur]
            following = n1 if n0 == prev else n0
            used.add(key(cur, following))
            prev, cur = cur, following
        chain.append(a)
        chains.append((chain, True))

    return chains


def _canonical_points(points: np.ndarray, closed: bool, decimals: int) -> np.ndarray:
    """Orient a chain so the same edge always comes out the same way round."""
    rounded = [tuple(p) for p in np.round(points, decimals)]
    if not closed:
        if rounded[0] > rounded[-1]:
            return points[::-1].copy()
        return points.copy()

    ring = points[:-1]
    ring_keys = rounded[:-1]
    first = min(range(len(ring_keys)), key=lambda i: ring_keys[i])
    ring = np.roll(ring, -first, axis=0)
    ring_keys = ring_keys[first:] + ring_keys[:first]
    if len(ring_keys) > 2 and ring_keys[1] > ring_keys[-1]:
        ring = np.concatenate([ring[:1], ring[1:][::-1]])
    return np.vstack([ring, ring[:1]])


def _apex(pa: np.ndarray, pb: np.ndarray, to_a: np.ndarray, to_b: np.ndarray) -> np.ndarray:
    """Place a triangle's third vertex left of pa->pb from its 3D side lengths."""
    da = float(np.linalg.norm(to_a))
    db = float(np.linalg.norm(to_b))
    e = pb - pa
    length = float(np.linalg.norm(e))
    if length == 0.0:
        raise GeometryPrecondition("Degenerate triangle in face")
    ex = e / length
    ey = np.array([-ex[1], ex[0]])
    x = (da * da - db * db + length * length) / (2.0 * length)
    h = math.sqrt(max(da * da - x * x, 0.0))
    return pa + ex * x + ey * h


def _rotate_to_new_vertex(tri: np.ndarray, placed_tri: np.ndarray) -> Tuple[int, int, int]:
    """Rotate ``tri`` (keeping its winding) so the vertex not shared comes last."""
    shared = set(int(v) for v in placed_tri)
    values = [int(v) for v in tri]
    for r in range(3):
        i, j, k = values[r], values[(r + 1) % 3], values[(r + 2) % 3]
        if k not in shared:
            return i, j, k
    # All three shared: the triangles coincide; keep the original winding
    return values[0], values[1], values[2]
