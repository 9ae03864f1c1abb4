"""
Contact Solver
==============
Find the three vertices an object comes to rest on after it is released above a
horizontal support plane.

The object is assumed to topple quasi-statically in two stages:

1. It touches down on its lowest vertex c1 and rotates about the horizontal
   axis through c1 perpendicular to the line from c1 to the center of gravity,
   until a second vertex c2 reaches the ground.
2. It rotates about the edge c1-c2, in the sense that lowers the center of
   gravity, until a third vertex c3 reaches the ground.

The stability check then tests whether the projected center of gravity lies in
the convex hull of every vertex that ends up on the ground.

Note: the per-vertex loops are numba kernels; everything else is NumPy.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Union

import numba as nb
import numpy as np

from posedistribution.config import DEFAULT_TOLERANCES, EPS, UNREACHABLE_ANGLE, Tolerances
from posedistribution.exceptions import DegenerateRotationAxis
from posedistribution.geometry.convex_hull import is_inside_hull, spans_area
from posedistribution.geometry.mesh import Mesh
from posedistribution.geometry.transforms import (
    UNIT_Z,
    angle_axis_matrix,
    normalize,
    rotation_matrix_to_quaternion,
)

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@nb.njit(cache=True)
def _robust_argmin(values: npt.NDArray[np.float64], eps: float) -> int:
    min_id = 0
    for i in range(1, values.shape[0]):
        if values[min_id] - eps > values[i]:
            min_id = i
    return min_id


@nb.njit(cache=True)
def _touch_angles(
    vertices: npt.NDArray[np.float64],
    pivot_id: int,
    axis: npt.NDArray[np.float64],
    excluded_id: int,
    eps: float,
    unreachable: float,
) -> npt.NDArray[np.float64]:
    """
    Rotation angle about `axis` (through the pivot vertex) after which each
    vertex reaches the height of the pivot.

    The pivot, the excluded vertex and every vertex lying on the axis line get
    the `unreachable` angle.
    """
    n = vertices.shape[0]
    angles = np.empty(n, dtype=np.float64)
    for i in range(n):
        if i == pivot_id or i == excluded_id:
            angles[i] = unreachable
            continue
        dx = vertices[i, 0] - vertices[pivot_id, 0]
        dy = vertices[i, 1] - vertices[pivot_id, 1]
        dz = vertices[i, 2] - vertices[pivot_id, 2]
        # Horizontal offset perpendicular to the axis, positive on the side
        # that swings down.
        in_plane = axis[1] * dx - axis[0] * dy
        if abs(dz) <= eps and abs(in_plane) <= eps:
            angles[i] = unreachable
            continue
        angles[i] = math.atan2(abs(dz), in_plane)
    return angles


def robust_argmin(values: npt.ArrayLike, eps: float = EPS) -> int:
    """
    Index of the minimum, preferring the lowest index among near-ties.

    A later entry only replaces the current minimum when it is smaller by more
    than `eps`.

    Raises:
        ValueError: If `values` is empty.
    """
    values = np.ascontiguousarray(values, dtype=np.float64).ravel()
    if values.size == 0:
        raise ValueError("Cannot take the argmin of an empty sequence.")
    return int(_robust_argmin(values, eps))


def _lowest_remaining(vertices: npt.NDArray[np.float64], chosen: Iterable[int], eps: float) -> int:
    """Lowest vertex that is neither chosen nor coincident with a chosen one."""
    heights = vertices[:, 2].copy()
    for vertex_id in chosen:
        coincident = np.linalg.norm(vertices - vertices[vertex_id], axis=1) <= eps
        heights[coincident] = UNREACHABLE_ANGLE
    next_id = robust_argmin(heights, eps)
    if heights[next_id] >= UNREACHABLE_ANGLE:
        raise ValueError("Not enough distinct vertices to place the object.")
    return next_id


def _next_contact(angles: npt.NDArray[np.float64], eps: float) -> int:
    next_id = robust_argmin(angles, eps)
    if angles[next_id] >= UNREACHABLE_ANGLE:
        raise ValueError("All vertices lie on the rotation axis; the object has no support footprint.")
    return next_id


@dataclass(frozen=True, eq=False)
class ContactSolution:
    """
    Result of the contact solver.

    Attributes:
        vertex_ids: Indices of the first, second and third ground contact.
        rotation: Net 3x3 rotation (second stage @ first stage) applied to the
            object in the frame the vertices were given in.
        stable: Whether the resting configuration is statically stable.
        degenerate: Whether a stage was replaced by a zero rotation because the
            center of gravity lay on its axis. A degenerate rest whose ground
            footprint is a point or a segment is never reported as stable.
    """
    vertex_ids: tuple[int, int, int]
    rotation: npt.NDArray[np.float64]
    stable: bool
    degenerate: bool = False

    @property
    def quaternion(self) -> tuple[float, float, float, float]:
        """Net rotation as a (w, x, y, z) quaternion."""
        return tuple(float(c) for c in rotation_matrix_to_quaternion(self.rotation))


def find_three_points(
    current_vertices: npt.ArrayLike,
    current_center_of_gravity: npt.ArrayLike,
    balance_check: bool = True,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
) -> ContactSolution:
    """
    Determine the three resting contacts of an object dropped onto z = const.

    Args:
        current_vertices: (n, 3) vertex positions in the frame where gravity
            points along -z.
        current_center_of_gravity: Center of gravity in the same frame.
        balance_check: If True, a stage whose rotation axis is undefined raises
            `DegenerateRotationAxis`. If False, the stage becomes a zero
            rotation and the next contact is the lowest remaining vertex.
        tolerances: Numerical tolerances.

    Returns:
        The contact triple, the net rotation and the stability verdict.

    Raises:
        DegenerateRotationAxis: On a balanced configuration with `balance_check`.
        ValueError: If the vertex set cannot support the object.
    """
    vertices = np.ascontiguousarray(current_vertices, dtype=np.float64)
    if vertices.ndim != 2 or vertices.shape[1] != 3 or vertices.shape[0] < 3:
        raise ValueError(f"Need an (n, 3) vertex array with n >= 3, got shape {vertices.shape}.")
    center_of_gravity = np.asarray(current_center_of_gravity, dtype=np.float64).reshape(3)
    eps = tolerances.contact
    degenerate = False

    # Stage 1: touch down on the lowest vertex and topple towards the center of gravity
    id_1 = robust_argmin(vertices[:, 2], eps)
    first_axis = np.cross(vertices[id_1] - center_of_gravity, UNIT_Z)
    first_axis_norm = np.linalg.norm(first_axis)
    if first_axis_norm < eps:
        if balance_check:
            logger.warning(f"Center of gravity is above the lowest vertex {id_1}, object is balanced on a point.")
            raise DegenerateRotationAxis(stage=1)
        degenerate = True
        id_2 = _lowest_remaining(vertices, (id_1,), eps)
        first_rotation = np.eye(3)
    else:
        first_axis = first_axis / first_axis_norm
        first_angles = _touch_angles(vertices, id_1, first_axis, -1, eps, UNREACHABLE_ANGLE)
        id_2 = _next_contact(first_angles, eps)
        first_rotation = angle_axis_matrix(first_angles[id_2], first_axis)
    logger.debug(f"First stage: pivot {id_1}, next contact {id_2}.")

    rotated_vertices = vertices @ first_rotation.T
    rotated_center_of_gravity = first_rotation @ center_of_gravity

    # Stage 2: topple about the edge between the first two contacts
    second_axis = normalize(rotated_vertices[id_2] - rotated_vertices[id_1])
    direction = np.cross(rotated_center_of_gravity - rotated_vertices[id_1], second_axis)[2]
    if abs(direction) < eps:
        if balance_check:
            logger.warning(f"Center of gravity is above the edge {id_1}-{id_2}, object is balanced on an edge.")
            raise DegenerateRotationAxis(stage=2)
        degenerate = True
        id_3 = _lowest_remaining(rotated_vertices, (id_1, id_2), eps)
        second_rotation = np.eye(3)
    else:
        if direction < 0.0:
            second_axis = -second_axis
        second_angles = _touch_angles(rotated_vertices, id_1, second_axis, id_2, eps, UNREACHABLE_ANGLE)
        id_3 = _next_contact(second_angles, eps)
        second_rotation = angle_axis_matrix(second_angles[id_3], second_axis)
    logger.debug(f"Second stage: edge {id_1}-{id_2}, next contact {id_3}.")

    rotation = second_rotation @ first_rotation
    final_vertices = vertices @ rotation.T
    final_center_of_gravity = rotation @ center_of_gravity

    ground_height = final_vertices[id_1, 2]
    on_ground = final_vertices[final_vertices[:, 2] <= ground_height + tolerances.ground]
    stable = is_inside_hull(final_center_of_gravity[:2], on_ground[:, :2], tolerances.hull)
    if degenerate and not spans_area(on_ground[:, :2], tolerances.hull):
        # Balanced on a point or an edge
        stable = False
    logger.debug(f"Resting on {on_ground.shape[0]} vertices, stable={stable}.")

    return ContactSolution(
        vertex_ids=(int(id_1), int(id_2), int(id_3)),
        rotation=rotation,
        stable=stable,
        degenerate=degenerate,
    )


def solve_contacts(
    mesh: Union[Mesh, npt.ArrayLike],
    center_of_gravity: npt.ArrayLike,
    balance_check: bool = True,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
) -> ContactSolution:
    """
    Run the contact solver on a mesh (or a bare vertex array) already expressed
    in the support frame. See `find_three_points`.
    """
    vertices = mesh.vertices if isinstance(mesh, Mesh) else mesh
    return find_three_points(vertices, center_of_gravity, balance_check, tolerances)
