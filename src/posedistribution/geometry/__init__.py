from posedistribution.geometry.convex_hull import is_inside_hull, spans_area
from posedistribution.geometry.dual import Dual, jacobian
from posedistribution.geometry.mesh import Mesh, PrimitiveType, primitive_to_mesh
from posedistribution.geometry.transforms import (
    adjoint,
    angle_axis_matrix,
    check,
    hat,
    invert_transform,
    make_transform,
    particle_to_transform,
    to_transform,
    transform_to_particle,
)

__all__ = [
    "Dual",
    "Mesh",
    "PrimitiveType",
    "adjoint",
    "angle_axis_matrix",
    "check",
    "hat",
    "invert_transform",
    "is_inside_hull",
    "jacobian",
    "make_transform",
    "particle_to_transform",
    "primitive_to_mesh",
    "spans_area",
    "to_transform",
    "transform_to_particle",
]
