"""
Distribution Updaters
=====================
Propagate a Gaussian belief over an object's in-hand pose through the act of
placing it on a horizontal support.

Why is this file needed?
------------------------
1. Mean: the contact solver determines which three vertices the object rests
   on and the resulting pose.
2. Covariance: the placement kinematics is differentiated with respect to the
   pre-placement pose (forward-mode dual numbers) and the covariance is
   propagated to first order, J C J^T.

Two parametrizations are supported:
    * Euler form: the belief lives on particles (x, y, z, roll, pitch, yaw).
    * Lie form: the mean is a 4x4 transform and the covariance is over left
      perturbations (I + hat(u)) @ mean with u = (wx, wy, wz, vx, vy, vz).

Every call is a pure function of its inputs; calls may run concurrently.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

import numpy as np

from posedistribution.config import DEFAULT_TOLERANCES, Tolerances
from posedistribution.distribution import propagate_covariance
from posedistribution.exceptions import InternalInconsistency, UnstablePlacement
from posedistribution.geometry.dual import jacobian
from posedistribution.geometry.mesh import Mesh
from posedistribution.geometry.transforms import (
    check,
    hat,
    invert_transform,
    make_transform,
    particle_to_transform,
    transform_point,
    transform_points,
    transform_to_particle,
)
from posedistribution.placement.contacts import ContactSolution, find_three_points
from posedistribution.placement.kinematics import calculate_transform_after_placing

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

MeshLike = Union[Mesh, "npt.ArrayLike"]


@dataclass(frozen=True, eq=False)
class Placement:
    """
    Outcome of placing the mean pose.

    Attributes:
        new_mean: 4x4 object pose in the gripper frame after placing.
        contacts: Contact solver result in the world frame.
        ground_touch_vertices: (3, 3) contact vertices in the object frame.
    """
    new_mean: npt.NDArray[np.float64]
    contacts: ContactSolution
    ground_touch_vertices: npt.NDArray[np.float64]


def _vertices_of(mesh: MeshLike) -> npt.NDArray[np.float64]:
    if isinstance(mesh, Mesh):
        return mesh.vertices
    return np.asarray(mesh, dtype=np.float64).reshape(-1, 3)


def _as_matrix(matrix: npt.ArrayLike, shape: tuple[int, int], name: str) -> npt.NDArray[np.float64]:
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.shape != shape:
        raise ValueError(f"'{name}' must have shape {shape}, got {matrix.shape}.")
    return matrix


def compute_placement(
    mean_transform: npt.ArrayLike,
    center_of_gravity: npt.ArrayLike,
    mesh: MeshLike,
    support_surface: float,
    gripper_transform: npt.ArrayLike,
    balance_check: bool = True,
    stability_check: bool = True,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
) -> Placement:
    """
    Run the contact solver for a pose and build the post-placement pose.

    Args:
        mean_transform: 4x4 object pose in the gripper frame.
        center_of_gravity: Center of gravity in the object frame.
        mesh: Object mesh or (n, 3) vertex array in the object frame.
        support_surface: Height of the support plane in the world frame.
        gripper_transform: 4x4 gripper pose in the world frame.
        balance_check: Raise on balanced configurations instead of skipping
            the degenerate toppling stage.
        stability_check: Raise `UnstablePlacement` if the object would not rest.
        tolerances: Numerical tolerances.

    Returns:
        The new mean pose, the contact solution and the contact vertices.

    Raises:
        DegenerateRotationAxis: See `find_three_points`.
        UnstablePlacement: If `stability_check` and the rest is not stable.
    """
    mean_transform = _as_matrix(mean_transform, (4, 4), "mean_transform")
    gripper_transform = _as_matrix(gripper_transform, (4, 4), "gripper_transform")
    center_of_gravity = np.asarray(center_of_gravity, dtype=np.float64).reshape(3)
    vertices = _vertices_of(mesh)

    current_transform = gripper_transform @ mean_transform
    current_cog = transform_point(current_transform, center_of_gravity)
    current_vertices = transform_points(current_transform, vertices)

    contacts = find_three_points(current_vertices, current_cog, balance_check, tolerances)
    if stability_check and not contacts.stable:
        logger.warning(f"Placement is not stable on contacts {contacts.vertex_ids}.")
        raise UnstablePlacement(contacts.vertex_ids)

    final_cog = contacts.rotation @ current_cog
    final_first_contact = contacts.rotation @ current_vertices[contacts.vertex_ids[0]]
    translation = np.array([
        current_cog[0] - final_cog[0],
        current_cog[1] - final_cog[1],
        support_surface - final_first_contact[2],
    ])
    placing = make_transform(contacts.rotation, translation)
    new_mean = invert_transform(gripper_transform) @ placing @ current_transform

    return Placement(
        new_mean=new_mean,
        contacts=contacts,
        ground_touch_vertices=vertices[list(contacts.vertex_ids)].copy(),
    )


def update_distribution_euler(
    mean: npt.ArrayLike,
    covariance: npt.ArrayLike,
    center_of_gravity: npt.ArrayLike,
    three_contacts: npt.ArrayLike,
    support_surface: float,
    gripper_transform: npt.ArrayLike,
    tolerance: float = DEFAULT_TOLERANCES.contact,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Euler-form update for a known contact triple.

    Args:
        mean: Particle (x, y, z, roll, pitch, yaw) in the gripper frame.
        covariance: 6x6 covariance over particles.
        center_of_gravity: Center of gravity in the object frame.
        three_contacts: (3, 3) contact vertices in the object frame.
        support_surface: Height of the support plane in the world frame.
        gripper_transform: 4x4 gripper pose in the world frame.
        tolerance: Balanced-stage threshold passed to the kinematics.

    Returns:
        New particle mean and its 6x6 covariance.
    """
    mean = np.asarray(mean, dtype=np.float64).reshape(6)
    covariance = _as_matrix(covariance, (6, 6), "covariance")
    gripper_transform = _as_matrix(gripper_transform, (4, 4), "gripper_transform")

    def placed_particle(particle: Any) -> npt.NDArray:
        new_transform = calculate_transform_after_placing(
            particle_to_transform(particle),
            center_of_gravity,
            three_contacts,
            support_surface,
            gripper_transform,
            tolerance,
        )
        return transform_to_particle(new_transform)

    new_mean, jac = jacobian(placed_particle, mean)
    logger.info(f"Euler update: new mean {np.round(new_mean, 6)}.")
    return new_mean, propagate_covariance(jac, covariance)


def place_update_distribution(
    mean: npt.ArrayLike,
    covariance: npt.ArrayLike,
    center_of_gravity: npt.ArrayLike,
    mesh: MeshLike,
    support_surface: float,
    gripper_transform: npt.ArrayLike,
    balance_check: bool = True,
    stability_check: bool = True,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Euler-form update for a mesh: solve the contacts at the mean, then
    propagate the particle belief through the placement.

    Returns:
        New particle mean and its 6x6 covariance.

    Raises:
        DegenerateRotationAxis: See `find_three_points`.
        UnstablePlacement: If `stability_check` and the rest is not stable.
    """
    mean = np.asarray(mean, dtype=np.float64).reshape(6)
    placement = compute_placement(
        particle_to_transform(mean),
        center_of_gravity,
        mesh,
        support_surface,
        gripper_transform,
        balance_check,
        stability_check,
        tolerances,
    )
    return update_distribution_euler(
        mean,
        covariance,
        center_of_gravity,
        placement.ground_touch_vertices,
        support_surface,
        gripper_transform,
        tolerances.contact,
    )


def update_distribution_lie(
    mean: npt.ArrayLike,
    covariance: npt.ArrayLike,
    center_of_gravity: npt.ArrayLike,
    mesh: MeshLike,
    support_surface: float,
    gripper_transform: npt.ArrayLike,
    balance_check: bool = True,
    stability_check: bool = True,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Lie-form update: propagate a belief over left perturbations of a 4x4 mean.

    The residual r(u) = check(place((I + hat(u)) @ mean) @ inv(new_mean) - I)
    is differentiated at u = 0. Its value there must vanish because the new
    mean is the placement of the old one.

    Args:
        mean: 4x4 object pose in the gripper frame.
        covariance: 6x6 covariance over (wx, wy, wz, vx, vy, vz).
        center_of_gravity: Center of gravity in the object frame.
        mesh: Object mesh or (n, 3) vertex array in the object frame.
        support_surface: Height of the support plane in the world frame.
        gripper_transform: 4x4 gripper pose in the world frame.
        balance_check: Raise on balanced configurations.
        stability_check: Raise if the object would not rest.
        tolerances: Numerical tolerances.

    Returns:
        New 4x4 mean and its 6x6 covariance.

    Raises:
        DegenerateRotationAxis: See `find_three_points`.
        UnstablePlacement: If `stability_check` and the rest is not stable.
        InternalInconsistency: If the residual at zero exceeds
            `tolerances.consistency`.
    """
    mean = _as_matrix(mean, (4, 4), "mean")
    covariance = _as_matrix(covariance, (6, 6), "covariance")
    gripper_transform = _as_matrix(gripper_transform, (4, 4), "gripper_transform")

    placement = compute_placement(
        mean,
        center_of_gravity,
        mesh,
        support_surface,
        gripper_transform,
        balance_check,
        stability_check,
        tolerances,
    )
    inverse_new_mean = invert_transform(placement.new_mean)

    def residual(perturbation: Any) -> npt.NDArray:
        perturbed = (np.eye(4) + hat(perturbation)) @ mean
        result = calculate_transform_after_placing(
            perturbed,
            center_of_gravity,
            placement.ground_touch_vertices,
            support_surface,
            gripper_transform,
            tolerances.contact,
        )
        return check(result @ inverse_new_mean - np.eye(4))

    value, jac = jacobian(residual, np.zeros(6))
    residual_norm = float(np.linalg.norm(value))
    if residual_norm >= tolerances.consistency:
        logger.warning(f"Placement kinematics disagrees with the contact solver (residual {residual_norm:.3e}).")
        raise InternalInconsistency(residual_norm, tolerances.consistency)

    logger.info(f"Lie update on contacts {placement.contacts.vertex_ids}, residual {residual_norm:.3e}.")
    return placement.new_mean, propagate_covariance(jac, covariance)


place_update_lie_distribution = update_distribution_lie
