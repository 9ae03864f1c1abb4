"""
Rigid Transforms
================
Homogeneous 4x4 transforms, rotations and pose conversions.

Every function here is generic over the scalar type: it works on float arrays
and on object arrays of `Dual` numbers, which is what lets the placement
kinematics be differentiated.

Conventions:
    * Quaternions are (w, x, y, z).
    * Roll-pitch-yaw is the ZYX convention: R = Rz(yaw) @ Ry(pitch) @ Rx(roll).
    * A particle is (x, y, z, roll, pitch, yaw).
    * Lie tangent vectors are (wx, wy, wz, vx, vy, vz): rotation first.
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

import numpy as np

from posedistribution.geometry.dual import Scalar, asin, atan2, cos, sin, sqrt, value_of

if TYPE_CHECKING:
    import numpy.typing as npt

UNIT_Z = np.array([0.0, 0.0, 1.0])


def dot(a: Any, b: Any) -> Scalar:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Any, b: Any) -> npt.NDArray:
    return np.array([
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    ])


def norm(v: Any) -> Scalar:
    return sqrt(dot(v, v))


def normalize(v: Any) -> npt.NDArray:
    """Unit vector along v. A zero vector is returned unchanged."""
    length = norm(v)
    if value_of(length) == 0.0:
        return np.asarray(v)
    return np.asarray(v) / length


def skew(v: Any) -> npt.NDArray:
    """
    Cross-product matrix [v]x such that skew(v) @ u == cross(v, u).
    """
    return np.array([
        [0.0, -v[2], v[1]],
        [v[2], 0.0, -v[0]],
        [-v[1], v[0], 0.0],
    ])


def angle_axis_matrix(angle: Scalar, axis: Any) -> npt.NDArray:
    """
    Rotation by `angle` about the unit `axis` through the origin (Rodrigues).

    Args:
        angle: Rotation angle in radians (right-hand rule).
        axis: Unit rotation axis.

    Returns:
        3x3 rotation matrix.
    """
    axis = np.asarray(axis)
    c = cos(angle)
    s = sin(angle)
    outer = axis[:, None] * axis[None, :]
    return c * np.eye(3) + s * skew(axis) + (1.0 - c) * outer


def make_transform(rotation: Any, translation: Any) -> npt.NDArray:
    """Assemble a homogeneous transform from a 3x3 rotation and a translation."""
    rotation = np.asarray(rotation)
    translation = np.asarray(translation)
    dtype = np.result_type(rotation.dtype, translation.dtype, np.float64)

    transform = np.zeros((4, 4), dtype=dtype)
    if dtype == object:
        transform.fill(0.0)
    transform[:3, :3] = rotation
    transform[:3, 3] = translation
    transform[3, 3] = 1.0
    return transform


def invert_transform(transform: Any) -> npt.NDArray:
    """Inverse of a rigid transform, using R^T instead of a general inverse."""
    transform = np.asarray(transform)
    rotation_t = transform[:3, :3].T
    return make_transform(rotation_t, -(rotation_t @ transform[:3, 3]))


def transform_point(transform: Any, point: Any) -> npt.NDArray:
    transform = np.asarray(transform)
    return transform[:3, :3] @ np.asarray(point) + transform[:3, 3]


def transform_points(transform: npt.ArrayLike, points: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    Apply a float transform to an (n, 3) array of points.
    """
    transform = np.asarray(transform, dtype=np.float64)
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return points @ transform[:3, :3].T + transform[:3, 3]


def rpy_to_quaternion(roll: Scalar, pitch: Scalar, yaw: Scalar) -> tuple[Scalar, Scalar, Scalar, Scalar]:
    """
    Convert ZYX roll-pitch-yaw angles to a unit quaternion (w, x, y, z).
    """
    cy = cos(yaw * 0.5)
    sy = sin(yaw * 0.5)
    cp = cos(pitch * 0.5)
    sp = sin(pitch * 0.5)
    cr = cos(roll * 0.5)
    sr = sin(roll * 0.5)

    w = cr * cp * cy + sr * sp * sy
    x = sr * cp * cy - cr * sp * sy
    y = cr * sp * cy + sr * cp * sy
    z = cr * cp * sy - sr * sp * cy
    return w, x, y, z


def quaternion_to_rpy(w: Scalar, x: Scalar, y: Scalar, z: Scalar) -> tuple[Scalar, Scalar, Scalar]:
    """
    Convert a unit quaternion (w, x, y, z) to ZYX roll-pitch-yaw angles.

    Pitch is clamped to +/- pi/2 at gimbal lock.
    """
    sinr_cosp = 2.0 * (w * x + y * z)
    cosr_cosp = 1.0 - 2.0 * (x * x + y * y)
    roll = atan2(sinr_cosp, cosr_cosp)

    sinp = 2.0 * (w * y - z * x)
    if abs(value_of(sinp)) >= 1.0:
        pitch = math.copysign(math.pi / 2.0, value_of(sinp))
    else:
        pitch = asin(sinp)

    siny_cosp = 2.0 * (w * z + x * y)
    cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
    yaw = atan2(siny_cosp, cosy_cosp)
    return roll, pitch, yaw


def quaternion_to_matrix(w: Scalar, x: Scalar, y: Scalar, z: Scalar) -> npt.NDArray:
    """Rotation matrix of a unit quaternion (w, x, y, z)."""
    return np.array([
        [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - z * w), 2.0 * (x * z + y * w)],
        [2.0 * (x * y + z * w), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - x * w)],
        [2.0 * (x * z - y * w), 2.0 * (y * z + x * w), 1.0 - 2.0 * (x * x + y * y)],
    ])


def rotation_matrix_to_quaternion(rotation: Any) -> tuple[Scalar, Scalar, Scalar, Scalar]:
    """
    Unit quaternion (w, x, y, z) of a rotation matrix.

    Branches on the largest diagonal term so the square root argument stays well
    away from zero. The branch is chosen on values, so a dual matrix takes the
    same branch as its float counterpart.
    """
    r = np.asarray(rotation)
    trace = r[0, 0] + r[1, 1] + r[2, 2]
    if trace > 0.0:
        s = sqrt(trace + 1.0)
        w = 0.5 * s
        s = 0.5 / s
        return w, (r[2, 1] - r[1, 2]) * s, (r[0, 2] - r[2, 0]) * s, (r[1, 0] - r[0, 1]) * s

    i = 0
    if r[1, 1] > r[0, 0]:
        i = 1
    if r[2, 2] > r[i, i]:
        i = 2
    j = (i + 1) % 3
    k = (j + 1) % 3

    s = sqrt(r[i, i] - r[j, j] - r[k, k] + 1.0)
    xyz: list[Scalar] = [0.0, 0.0, 0.0]
    xyz[i] = 0.5 * s
    s = 0.5 / s
    w = (r[k, j] - r[j, k]) * s
    xyz[j] = (r[j, i] + r[i, j]) * s
    xyz[k] = (r[k, i] + r[i, k]) * s
    return w, xyz[0], xyz[1], xyz[2]


def particle_to_transform(particle: Any) -> npt.NDArray:
    """
    Homogeneous transform of a particle (x, y, z, roll, pitch, yaw).
    """
    quaternion = rpy_to_quaternion(particle[3], particle[4], particle[5])
    return make_transform(quaternion_to_matrix(*quaternion), np.array([particle[0], particle[1], particle[2]]))


def transform_to_particle(transform: Any) -> npt.NDArray:
    """
    Particle (x, y, z, roll, pitch, yaw) of a homogeneous transform.

    The rotation goes through a quaternion, so roll and yaw come out in
    (-pi, pi] and pitch in [-pi/2, pi/2].
    """
    transform = np.asarray(transform)
    roll, pitch, yaw = quaternion_to_rpy(*rotation_matrix_to_quaternion(transform[:3, :3]))
    return np.array([transform[0, 3], transform[1, 3], transform[2, 3], roll, pitch, yaw])


def to_transform(
    x: float, y: float, z: float,
    qw: float, qx: float, qy: float, qz: float,
) -> npt.NDArray[np.float64]:
    """
    Homogeneous transform from a position and a (w, x, y, z) quaternion.

    Raises:
        ValueError: If the quaternion has zero norm.
    """
    quaternion = np.array([qw, qx, qy, qz], dtype=np.float64)
    length = np.linalg.norm(quaternion)
    if length == 0.0:
        raise ValueError("Quaternion must have a non-zero norm.")
    quaternion /= length
    return make_transform(quaternion_to_matrix(*quaternion), np.array([x, y, z], dtype=np.float64))


def hat(tangent: Any) -> npt.NDArray:
    """
    Map a tangent vector (wx, wy, wz, vx, vy, vz) to its 4x4 matrix form.
    """
    tangent = np.asarray(tangent)
    matrix = np.zeros((4, 4), dtype=np.result_type(tangent.dtype, np.float64))
    if matrix.dtype == object:
        matrix.fill(0.0)
    matrix[:3, :3] = skew(tangent[:3])
    matrix[:3, 3] = tangent[3:6]
    return matrix


def check(matrix: Any) -> npt.NDArray:
    """
    Extract a tangent vector (wx, wy, wz, vx, vy, vz) from a 4x4 matrix.

    The rotational part averages the antisymmetric off-diagonal pairs, so
    check(hat(u)) == u and only the skew part of the top-left block is kept.
    """
    m = np.asarray(matrix)
    return np.array([
        (m[2, 1] - m[1, 2]) * 0.5,
        (m[0, 2] - m[2, 0]) * 0.5,
        (m[1, 0] - m[0, 1]) * 0.5,
        m[0, 3],
        m[1, 3],
        m[2, 3],
    ])


def adjoint(transform: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    6x6 adjoint of a rigid transform acting on (w, v) tangent vectors.

    hat(adjoint(T) @ u) == T @ hat(u) @ inv(T).
    """
    transform = np.asarray(transform, dtype=np.float64)
    rotation = transform[:3, :3]
    result = np.zeros((6, 6), dtype=np.float64)
    result[:3, :3] = rotation
    result[3:, 3:] = rotation
    result[3:, :3] = skew(transform[:3, 3]) @ rotation
    return result
