"""
Triangle Meshes and Primitive Shapes
====================================
The object model consumed by the contact solver.

Only the vertex set matters for contact finding; triangles are kept so that
meshes can be concatenated, transformed and used for the center of mass.

Classes:
    PrimitiveType: Supported primitive shapes.
    Mesh: Immutable vertex/triangle container.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

import numpy as np

from posedistribution.config import EPS
from posedistribution.geometry.transforms import transform_points

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class PrimitiveType(StrEnum):
    BOX = "box"


@dataclass(frozen=True, eq=False)
class Mesh:
    """
    A rigid object given as a vertex set with triangle faces.

    Attributes:
        vertices: (n, 3) float array, n >= 3.
        triangles: (m, 3) int array of indices into `vertices`. May be empty.
    """
    vertices: npt.NDArray[np.float64]
    triangles: npt.NDArray[np.int64]

    def __post_init__(self) -> None:
        vertices = np.array(self.vertices, dtype=np.float64)
        triangles = np.array(self.triangles, dtype=np.int64)
        if triangles.size == 0:
            triangles = triangles.reshape(0, 3)

        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise ValueError(f"Vertices must have shape (n, 3), got {vertices.shape}.")
        if vertices.shape[0] < 3:
            raise ValueError(f"A mesh needs at least 3 vertices, got {vertices.shape[0]}.")
        if not np.all(np.isfinite(vertices)):
            raise ValueError("Vertices must be finite.")
        if triangles.ndim != 2 or triangles.shape[1] != 3:
            raise ValueError(f"Triangles must have shape (m, 3), got {triangles.shape}.")
        if triangles.size and (triangles.min() < 0 or triangles.max() >= vertices.shape[0]):
            raise ValueError("Triangle indices are out of range.")

        vertices.setflags(write=False)
        triangles.setflags(write=False)
        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "triangles", triangles)

    @property
    def number_of_vertices(self) -> int:
        return self.vertices.shape[0]

    def transformed(self, transform: npt.ArrayLike) -> Mesh:
        """Copy of the mesh with every vertex mapped by a 4x4 transform."""
        return Mesh(transform_points(transform, self.vertices), self.triangles)

    def scaled(self, factor: float) -> Mesh:
        return Mesh(self.vertices * factor, self.triangles)

    @classmethod
    def concatenate(cls, meshes: Iterable[Mesh]) -> Mesh:
        """
        Merge several meshes into one, shifting triangle indices accordingly.

        Raises:
            ValueError: If no mesh is given.
        """
        meshes = list(meshes)
        if not meshes:
            raise ValueError("Cannot concatenate an empty list of meshes.")

        vertices = []
        triangles = []
        offset = 0
        for mesh in meshes:
            vertices.append(mesh.vertices)
            triangles.append(mesh.triangles + offset)
            offset += mesh.number_of_vertices
        return cls(np.vstack(vertices), np.vstack(triangles))

    def volume(self) -> float:
        """Signed enclosed volume; positive for outward-oriented closed meshes."""
        a, b, c = self._corners()
        return float(np.einsum("ij,ij->i", a, np.cross(b, c)).sum() / 6.0)

    def center_of_mass(self) -> npt.NDArray[np.float64]:
        """
        Center of mass of the enclosed solid with uniform density.

        Sums signed tetrahedra spanned by the origin and each triangle. Meshes
        without an enclosed volume fall back to the vertex mean.
        """
        a, b, c = self._corners()
        volumes = np.einsum("ij,ij->i", a, np.cross(b, c)) / 6.0
        total = volumes.sum()
        if abs(total) <= EPS:
            logger.debug("Mesh encloses no volume, using the vertex mean as center of mass.")
            return self.vertices.mean(axis=0)
        centroids = (a + b + c) / 4.0
        return (volumes[:, None] * centroids).sum(axis=0) / total

    def _corners(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        corners = self.vertices[self.triangles]
        return corners[:, 0], corners[:, 1], corners[:, 2]


def _box(dimensions: Sequence[float]) -> Mesh:
    if len(dimensions) != 3:
        raise ValueError(f"A box needs 3 dimensions, got {len(dimensions)}.")
    half = np.asarray(dimensions, dtype=np.float64) / 2.0
    if np.any(half <= 0.0):
        raise ValueError(f"Box dimensions must be positive, got {tuple(dimensions)}.")

    # Vertex i sits on the positive side of axis d when bit d of i is set.
    bits = np.arange(8)
    vertices = np.column_stack([
        np.where(bits & (1 << axis), half[axis], -half[axis]) for axis in range(3)
    ])

    triangles = []
    for d0 in range(3):
        d1 = (d0 + 1) % 3
        d2 = (d0 + 2) % 3
        for face in (0, 1):
            base = (1 << d0) if face else 0
            for upper in (0, 1):
                v0 = base + ((1 << d1) + (1 << d2) if upper else 0)
                v1 = base + (1 << d1)
                v2 = base + (1 << d2)
                # Keep the winding outward on both faces
                if face == upper:
                    v1, v2 = v2, v1
                triangles.append((v0, v1, v2))
    return Mesh(vertices, np.array(triangles, dtype=np.int64))


def primitive_to_mesh(
    kind: PrimitiveType | str,
    dimensions: Sequence[float],
    transform: Optional[npt.ArrayLike] = None,
) -> Mesh:
    """
    Build a mesh for a primitive shape.

    Args:
        kind: Primitive type, e.g. PrimitiveType.BOX or "box".
        dimensions: Shape parameters. For a box: full extents along x, y and z.
        transform: Optional 4x4 pose of the primitive in the object frame.

    Returns:
        The primitive as a triangle mesh with outward winding.

    Raises:
        ValueError: For unsupported primitive types or invalid dimensions.
    """
    try:
        kind = PrimitiveType(kind)
    except ValueError:
        raise ValueError(f"Unsupported primitive type: {kind}") from None

    if kind is PrimitiveType.BOX:
        mesh = _box(dimensions)
    else:
        raise ValueError(f"Unsupported primitive type: {kind}")

    if transform is not None:
        mesh = mesh.transformed(transform)
    return mesh
