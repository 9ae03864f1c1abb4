"""Shared fixtures: simple convex bodies and helper transforms."""
import numpy as np
import pytest
from scipy.spatial import ConvexHull

from posedistribution.geometry.mesh import Mesh, PrimitiveType, primitive_to_mesh


@pytest.fixture
def unit_cube() -> Mesh:
    """Cube with vertices at all combinations of +-0.5."""
    return primitive_to_mesh(PrimitiveType.BOX, (1.0, 1.0, 1.0))


@pytest.fixture
def flat_box() -> Mesh:
    """Box that is wider than it is tall, so it settles on its large face."""
    return primitive_to_mesh(PrimitiveType.BOX, (0.4, 0.3, 0.1))


@pytest.fixture
def random_polyhedron() -> Mesh:
    """Convex hull of a fixed random point cloud, with outward triangles."""
    rng = np.random.default_rng(7)
    points = rng.normal(size=(40, 3)) * np.array([0.3, 0.2, 0.15])
    hull = ConvexHull(points)
    used = np.unique(hull.simplices)
    remap = {old: new for new, old in enumerate(used)}
    vertices = points[used]
    triangles = np.array([[remap[i] for i in simplex] for simplex in hull.simplices])

    # Qhull does not orient simplices; flip the inward-facing ones
    center = vertices.mean(axis=0)
    for triangle in triangles:
        a, b, c = vertices[triangle]
        if np.cross(b - a, c - a) @ (a - center) < 0.0:
            triangle[1], triangle[2] = triangle[2], triangle[1]
    return Mesh(vertices, triangles)


@pytest.fixture
def spd_covariance() -> np.ndarray:
    """A well conditioned symmetric positive definite 6x6 matrix."""
    rng = np.random.default_rng(3)
    a = rng.normal(size=(6, 6)) * 0.05
    return a @ a.T + 1e-4 * np.eye(6)
