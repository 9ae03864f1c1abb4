"""
Placement kinematics: the pose an object ends up in, given its contact triple.

`calculate_transform_after_placing` repeats the two toppling rotations of the
contact solver, but only for the three known contacts. It is written once for
float and dual scalars, so the distribution updaters can differentiate it with
respect to the pre-placement pose.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from posedistribution.config import EPS
from posedistribution.geometry.dual import Scalar, atan2, fabs, value_of
from posedistribution.geometry.transforms import (
    UNIT_Z,
    angle_axis_matrix,
    cross,
    invert_transform,
    make_transform,
    norm,
    normalize,
    transform_point,
)

if TYPE_CHECKING:
    import numpy.typing as npt


def _touch_angle(offset: Any, axis: Any) -> Scalar:
    """Rotation about `axis` that brings a point at `offset` from the pivot to the pivot height."""
    return atan2(fabs(offset[2]), axis[1] * offset[0] - axis[0] * offset[1])


def calculate_transform_after_placing(
    old_transform: Any,
    center_of_gravity: npt.ArrayLike,
    ground_touch_vertices: npt.ArrayLike,
    support_surface: float,
    gripper_transform: npt.ArrayLike,
    tolerance: float = EPS,
) -> npt.NDArray:
    """
    Object pose after placing, computed from a known contact triple.

    Args:
        old_transform: 4x4 object pose in the gripper frame before placing.
            Float or dual entries.
        center_of_gravity: Center of gravity in the object frame.
        ground_touch_vertices: (3, 3) array with the first, second and third
            contact in the object frame.
        support_surface: Height of the support plane in the world frame.
        gripper_transform: 4x4 gripper pose in the world frame.
        tolerance: Threshold below which a toppling stage counts as balanced
            and is skipped, as the contact solver does.

    Returns:
        4x4 object pose in the gripper frame after placing, with the scalar type
        of `old_transform`.
    """
    gripper_transform = np.asarray(gripper_transform, dtype=np.float64)
    center_of_gravity = np.asarray(center_of_gravity, dtype=np.float64).reshape(3)
    contacts = np.asarray(ground_touch_vertices, dtype=np.float64).reshape(3, 3)
    support_surface = float(support_surface)

    current_transform = gripper_transform @ np.asarray(old_transform)
    current_cog = transform_point(current_transform, center_of_gravity)
    current_1, current_2, current_3 = (transform_point(current_transform, contact) for contact in contacts)

    # Stage 1: about the horizontal axis through c1, perpendicular to c1-cog
    first_axis = cross(current_1 - current_cog, UNIT_Z)
    first_axis_norm = norm(first_axis)
    if value_of(first_axis_norm) < tolerance:
        first_rotation = np.eye(3)
    else:
        first_axis = normalize(first_axis)
        first_rotation = angle_axis_matrix(_touch_angle(current_2 - current_1, first_axis), first_axis)

    rotated_cog = first_rotation @ current_cog
    rotated_1 = first_rotation @ current_1
    rotated_2 = first_rotation @ current_2
    rotated_3 = first_rotation @ current_3

    # Stage 2: about the c1-c2 edge, towards the center of gravity
    second_axis = normalize(rotated_2 - rotated_1)
    direction = cross(rotated_cog - rotated_1, second_axis)[2]
    if abs(value_of(direction)) < tolerance:
        second_rotation = np.eye(3)
    else:
        if direction < 0.0:
            second_axis = -second_axis
        second_rotation = angle_axis_matrix(_touch_angle(rotated_3 - rotated_1, second_axis), second_axis)

    final_cog = second_rotation @ rotated_cog
    final_1 = second_rotation @ rotated_1

    # Keep the center of gravity above the same spot and put c1 on the support
    translation = np.array([
        current_cog[0] - final_cog[0],
        current_cog[1] - final_cog[1],
        support_surface - final_1[2],
    ])
    placing = make_transform(second_rotation @ first_rotation, translation)
    return invert_transform(gripper_transform) @ placing @ current_transform
