"""
Core geometry types for strip joinery.

Plane, Frame and Box carry placement as numpy vectors and produce 4x4
matrices through trimesh.transformations. Edge and Face are the B-rep style
views a kernel extracts from a mesh solid.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from trimesh import transformations as tf

Interval = Tuple[float, float]


def unit(vector) -> np.ndarray:
    """Return ``vector`` scaled to unit length (zero vectors are returned as-is)."""
    v = np.asarray(vector, dtype=float)
    n = float(np.linalg.norm(v))
    if n == 0.0:
        return v
    return v / n


@dataclass
class Plane:
    """A point plus two orthonormal in-plane axes; the normal is implied."""

    origin: np.ndarray
    x_axis: np.ndarray
    y_axis: np.ndarray

    def __post_init__(self):
        self.origin = np.asarray(self.origin, dtype=float)
        self.x_axis = unit(self.x_axis)
        self.y_axis = unit(self.y_axis)

    @property
    def normal(self) -> np.ndarray:
        return unit(np.cross(self.x_axis, self.y_axis))

    @classmethod
    def world_xy(cls) -> "Plane":
        return cls(np.zeros(3), [1.0, 0.0, 0.0], [0.0, 1.0, 0.0])

    @classmethod
    def world_xz(cls, origin) -> "Plane":
        """World X/Z plane through ``origin`` (mirror plane of a strip pair)."""
        return cls(origin, [1.0, 0.0, 0.0], [0.0, 0.0, 1.0])

    def at(self, origin) -> "Plane":
        """Same orientation, re-anchored at ``origin``."""
        return Plane(origin, self.x_axis.copy(), self.y_axis.copy())

    def mirror_matrix(self) -> np.ndarray:
        return tf.reflection_matrix(self.origin, self.normal)

    def project(self, points) -> np.ndarray:
        """Orthogonally project 3D points into this plane's (u, v) coordinates."""
        d = np.asarray(points, dtype=float) - self.origin
        return np.column_stack([d @ self.x_axis, d @ self.y_axis])


@dataclass
class Frame:
    """Orthonormal frame: origin, two in-plane axes and the implied z axis."""

    origin: np.ndarray
    x_axis: np.ndarray
    y_axis: np.ndarray

    def __post_init__(self):
        self.origin = np.asarray(self.origin, dtype=float)
        self.x_axis = np.asarray(self.x_axis, dtype=float)
        self.y_axis = np.asarray(self.y_axis, dtype=float)

    @property
    def z_axis(self) -> np.ndarray:
        return np.cross(self.x_axis, self.y_axis)

    def to_matrix(self) -> np.ndarray:
        """Local-to-world transform."""
        matrix = np.eye(4)
        matrix[:3, 0] = self.x_axis
        matrix[:3, 1] = self.y_axis
        matrix[:3, 2] = self.z_axis
        matrix[:3, 3] = self.origin
        return matrix

    def transformed(self, matrix: np.ndarray) -> "Frame":
        rot = matrix[:3, :3]
        origin = tf.transform_points([self.origin], matrix)[0]
        return Frame(origin, unit(rot @ self.x_axis), unit(rot @ self.y_axis))


@dataclass
class Box:
    """A frame plus one interval per local axis."""

    frame: Frame
    x_interval: Interval
    y_interval: Interval
    z_interval: Interval

    @classmethod
    def centered(cls, frame: Frame, half_extent: float) -> "Box":
        span = (-half_extent, half_extent)
        return cls(frame, span, span, span)

    @property
    def extents(self) -> np.ndarray:
        return np.array([
            self.x_interval[1] - self.x_interval[0],
            self.y_interval[1] - self.y_interval[0],
            self.z_interval[1] - self.z_interval[0],
        ])

    @property
    def center(self) -> np.ndarray:
        return self.placement_matrix()[:3, 3]

    def placement_matrix(self) -> np.ndarray:
        """Transform taking an origin-centred axis-aligned box to this box."""
        local = np.array([
            sum(self.x_interval) / 2.0,
            sum(self.y_interval) / 2.0,
            sum(self.z_interval) / 2.0,
        ])
        return self.frame.to_matrix() @ tf.translation_matrix(local)

    def transformed(self, matrix: np.ndarray) -> "Box":
        """Apply a rigid or mirror transform.

        A mirror flips handedness; the frame stays right-handed, so the z
        interval is reflected instead.
        """
        frame = self.frame.transformed(matrix)
        z_interval = self.z_interval
        if np.linalg.det(matrix[:3, :3]) < 0:
            z_interval = (-self.z_interval[1], -self.z_interval[0])
        return Box(frame, self.x_interval, self.y_interval, z_interval)


@dataclass
class Edge:
    """An ordered polyline along a B-rep style edge of a solid."""

    index: int
    points: np.ndarray  # (n, 3)
    closed: bool = False

    def __post_init__(self):
        self.points = np.asarray(self.points, dtype=float)

    @property
    def start(self) -> np.ndarray:
        return self.points[0]

    @property
    def end(self) -> np.ndarray:
        return self.points[-1]

    @property
    def segment_lengths(self) -> np.ndarray:
        return np.linalg.norm(np.diff(self.points, axis=0), axis=1)

    @property
    def length(self) -> float:
        return float(self.segment_lengths.sum())

    @property
    def direction(self) -> np.ndarray:
        """Unit vector from start point to end point."""
        return unit(self.end - self.start)

    @property
    def midpoint(self) -> np.ndarray:
        return self.point_at_length(self.length / 2.0)

    def is_linear(self, precision: float) -> bool:
        if self.closed or len(self.points) < 2:
            return False
        chord = self.end - self.start
        if np.linalg.norm(chord) <= precision:
            return False
        d = unit(chord)
        offsets = self.points - self.start
        perp = offsets - np.outer(offsets @ d, d)
        return bool(np.linalg.norm(perp, axis=1).max() <= precision)

    def _locate(self, s: float) -> Tuple[int, float]:
        lengths = self.segment_lengths
        cumulative = np.concatenate([[0.0], np.cumsum(lengths)])
        s = min(max(float(s), 0.0), float(cumulative[-1]))
        i = int(np.searchsorted(cumulative, s, side="right")) - 1
        i = min(max(i, 0), len(lengths) - 1)
        if lengths[i] == 0.0:
            return i, 0.0
        return i, (s - cumulative[i]) / lengths[i]

    def point_at_length(self, s: float) -> np.ndarray:
        """Point at arc length ``s`` from the start."""
        i, t = self._locate(s)
        return self.points[i] + t * (self.points[i + 1] - self.points[i])

    def tangent_at_length(self, s: float) -> np.ndarray:
        i, _ = self._locate(s)
        return unit(self.points[i + 1] - self.points[i])


@dataclass
class Face:
    """A smooth region of a solid's surface, bounded by sharp edges."""

    index: int
    face_ids: np.ndarray
    mesh: object = None  # trimesh.Trimesh submesh
    area: float = 0.0


# ─── Matrix helpers ──────────────────────────────────────────────────────────

def uniform_scale_about(point, factor: float) -> np.ndarray:
    return tf.scale_matrix(factor, origin=np.asarray(point, dtype=float))


def axis_scale_about(point, direction, factor: float) -> np.ndarray:
    """Scale by ``factor`` along ``direction`` only, fixing ``point``."""
    return tf.scale_matrix(
        factor,
        origin=np.asarray(point, dtype=float),
        direction=unit(direction),
    )


def translation(vector) -> np.ndarray:
    return tf.translation_matrix(np.asarray(vector, dtype=float))


def rotation_about(point, axis, angle_deg: float) -> np.ndarray:
    return tf.rotation_matrix(
        np.radians(angle_deg),
        np.asarray(axis, dtype=float),
        point=np.asarray(point, dtype=float),
    )
