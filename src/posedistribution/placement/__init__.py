"""
Placement of a grasped object on a horizontal support: contact solving, the
closed-form placement kinematics and the distribution updaters built on them.
"""
from posedistribution.placement.contacts import ContactSolution, find_three_points, robust_argmin, solve_contacts
from posedistribution.placement.kinematics import calculate_transform_after_placing
from posedistribution.placement.updaters import (
    Placement,
    compute_placement,
    place_update_distribution,
    place_update_lie_distribution,
    update_distribution_euler,
    update_distribution_lie,
)

__all__ = [
    "ContactSolution",
    "Placement",
    "calculate_transform_after_placing",
    "compute_placement",
    "find_three_points",
    "place_update_distribution",
    "place_update_lie_distribution",
    "robust_argmin",
    "solve_contacts",
    "update_distribution_euler",
    "update_distribution_lie",
]
