"""
posedistribution
================
Predict how the Gaussian belief over a grasped object's pose changes when the
object is released onto a flat support and topples to a three-point rest.

Note: this package is pure NumPy/SciPy/Numba and keeps no state between calls.
"""
from posedistribution.config import DEFAULT_TOLERANCES, EPS, LARGE_EPS, Tolerances
from posedistribution.distribution import (
    PoseWithCovariance,
    array_36_to_matrix_6x6,
    matrix_6x6_to_array_36,
    particle_to_pose,
    pose_to_particle,
    propagate_covariance,
    transform_covariance,
)
from posedistribution.exceptions import (
    DegenerateRotationAxis,
    InternalInconsistency,
    PlacementError,
    UnstablePlacement,
)
from posedistribution.geometry import Mesh, PrimitiveType, primitive_to_mesh
from posedistribution.logging_config import setup_logging
from posedistribution.placement import (
    ContactSolution,
    Placement,
    calculate_transform_after_placing,
    compute_placement,
    find_three_points,
    place_update_distribution,
    place_update_lie_distribution,
    solve_contacts,
    update_distribution_euler,
    update_distribution_lie,
)

__version__ = "0.1.0"

__all__ = [
    "ContactSolution",
    "DEFAULT_TOLERANCES",
    "DegenerateRotationAxis",
    "EPS",
    "InternalInconsistency",
    "LARGE_EPS",
    "Mesh",
    "Placement",
    "PlacementError",
    "PoseWithCovariance",
    "PrimitiveType",
    "Tolerances",
    "UnstablePlacement",
    "array_36_to_matrix_6x6",
    "calculate_transform_after_placing",
    "compute_placement",
    "find_three_points",
    "matrix_6x6_to_array_36",
    "particle_to_pose",
    "place_update_distribution",
    "place_update_lie_distribution",
    "pose_to_particle",
    "primitive_to_mesh",
    "propagate_covariance",
    "setup_logging",
    "solve_contacts",
    "transform_covariance",
    "update_distribution_euler",
    "update_distribution_lie",
]
