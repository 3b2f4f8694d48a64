"""
Shared test fixtures for strip joinery tests.
"""
import sys
import warnings
from pathlib import Path

# Suppress trimesh internal RuntimeWarning for degenerate cross-sections
# (divide-by-zero in center_mass on zero-volume boolean leftovers).
warnings.filterwarnings(
    "ignore",
    message="invalid value encountered in divide",
    category=RuntimeWarning,
    module=r"trimesh\.triangles",
)

import numpy as np
import pytest
import trimesh

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from strip_joinery.contracts import JoineryConfig
from strip_joinery.kernel import TrimeshKernel


def make_box(extents, center):
    mesh = trimesh.creation.box(extents=extents)
    mesh.apply_translation(center)
    return mesh


def make_curved_strip(radius=50.0, thickness=2.0, height=20.0, sweep_deg=90.0, segments=16):
    """A quarter-cylinder strip: developable inner/outer faces, flat top and bottom."""
    angles = np.radians(np.linspace(0.0, sweep_deg, segments + 1))
    rings = []
    for r in (radius, radius - thickness):
        for z in (0.0, height):
            rings.append(np.column_stack([
                r * np.cos(angles), r * np.sin(angles), np.full_like(angles, z),
            ]))
    vertices = np.vstack(rings)
    n = segments + 1
    ob, ot, ib, it = (k * n for k in range(4))

    faces = []

    def quad(a, b, c, d):
        faces.extend([[a, b, c], [a, c, d]])

    for i in range(segments):
        quad(ob + i, ob + i + 1, ot + i + 1, ot + i)   # outer
        quad(ib + i, it + i, it + i + 1, ib + i + 1)   # inner
        quad(ot + i, ot + i + 1, it + i + 1, it + i)   # top
        quad(ob + i, ib + i, ib + i + 1, ob + i + 1)   # bottom
    quad(ob, ot, it, ib)
    e = segments
    quad(ob + e, ib + e, it + e, ot + e)

    mesh = trimesh.Trimesh(vertices=vertices, faces=np.array(faces), process=True)
    mesh.fix_normals()
    return mesh


@pytest.fixture
def horizontal_strip():
    """100x100x10mm strip centred on the vertical strip's mid-height (z=25..35)."""
    return make_box([100, 100, 10], [0, 0, 30])


@pytest.fixture
def long_horizontal_strip():
    """100x200x10mm strip at z=25..35, longer in y than the vertical strip.

    A grown tenon overlap (110mm in y) leaves a closed opening in it instead of
    cutting it in two.
    """
    return make_box([100, 200, 10], [0, 0, 30])


@pytest.fixture
def vertical_strip():
    """10x100x60mm strip standing on z=0, centroid at (0, 0, 30).

    Edge 0 is the vertical edge at (x=-5, y=-50); edge 1 the bottom edge at
    x=-5 running along y.
    """
    return make_box([10, 100, 60], [0, 0, 30])


@pytest.fixture
def strip_a():
    """100x10x40mm strip crossing strip_b."""
    return make_box([100, 10, 40], [0, 0, 20])


@pytest.fixture
def strip_b():
    """10x100x40mm strip crossing strip_a."""
    return make_box([10, 100, 40], [0, 0, 20])


@pytest.fixture
def curved_strip():
    return make_curved_strip()


@pytest.fixture
def crossing_strips():
    """Two quarter-cylinder walls (r 48..50, 20 tall) crossing almost at right angles.

    The second wall is centred on (71, 0) and sweeps 90..180 degrees.
    """
    a = make_curved_strip(segments=64)
    b = make_curved_strip(segments=64)
    b.apply_transform(trimesh.transformations.rotation_matrix(np.pi / 2, [0, 0, 1]))
    b.apply_translation([71.0, 0.0, 0.0])
    return a, b


@pytest.fixture
def kernel():
    return TrimeshKernel()


@pytest.fixture
def config():
    return JoineryConfig()


class SpyKernel(TrimeshKernel):
    """TrimeshKernel that counts boolean calls."""

    def __init__(self):
        super().__init__()
        self.boolean_calls = 0

    def boolean(self, kind, solids, precision):
        self.boolean_calls += 1
        return super().boolean(kind, solids, precision)


@pytest.fixture
def spy_kernel():
    return SpyKernel()
