"""Rigid transform helpers for float and dual scalars."""
import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from posedistribution.geometry import dual
from posedistribution.geometry.transforms import (
    adjoint,
    angle_axis_matrix,
    check,
    cross,
    hat,
    invert_transform,
    make_transform,
    normalize,
    particle_to_transform,
    quaternion_to_matrix,
    rotation_matrix_to_quaternion,
    rpy_to_quaternion,
    skew,
    to_transform,
    transform_point,
    transform_to_particle,
)


def rot_x(a):
    c, s = math.cos(a), math.sin(a)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def rot_y(a):
    c, s = math.cos(a), math.sin(a)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rot_z(a):
    c, s = math.cos(a), math.sin(a)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def test_skew_matches_cross_product():
    a = np.array([0.3, -1.2, 2.0])
    b = np.array([1.5, 0.4, -0.7])
    assert_allclose(skew(a) @ b, np.cross(a, b))
    assert_allclose(cross(a, b), np.cross(a, b))


def test_angle_axis_matches_elementary_rotations():
    assert_allclose(angle_axis_matrix(0.4, np.array([0.0, 0.0, 1.0])), rot_z(0.4), atol=1e-15)
    assert_allclose(angle_axis_matrix(-1.1, np.array([1.0, 0.0, 0.0])), rot_x(-1.1), atol=1e-15)


def test_particle_uses_zyx_convention():
    """R = Rz(yaw) Ry(pitch) Rx(roll)"""
    particle = np.array([0.1, 0.2, 0.3, 0.4, -0.5, 2.5])
    transform = particle_to_transform(particle)
    assert_allclose(transform[:3, :3], rot_z(2.5) @ rot_y(-0.5) @ rot_x(0.4), atol=1e-12)
    assert_allclose(transform[:3, 3], [0.1, 0.2, 0.3])


@pytest.mark.parametrize("particle", [
    [0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
    [1.0, -2.0, 0.5, 0.3, 0.2, 0.1],
    [0.0, 0.5, 1.0, -2.8, 1.2, 3.0],
    [-0.3, 0.2, 0.0, 3.0, -0.9, -2.9],
])
def test_particle_round_trip(particle):
    particle = np.array(particle)
    assert_allclose(transform_to_particle(particle_to_transform(particle)), particle, atol=1e-10)


def test_quaternion_round_trip_on_every_branch():
    """Rotations with positive and negative traces recover the same matrix"""
    for rotation in (rot_z(0.3), rot_x(3.0), rot_y(2.9), rot_z(3.1) @ rot_x(0.2)):
        quaternion = rotation_matrix_to_quaternion(rotation)
        assert np.linalg.norm(quaternion) == pytest.approx(1.0)
        assert_allclose(quaternion_to_matrix(*quaternion), rotation, atol=1e-12)


def test_rpy_to_quaternion_is_unit():
    assert np.linalg.norm(rpy_to_quaternion(0.7, -0.2, 1.9)) == pytest.approx(1.0)


def test_invert_transform():
    transform = make_transform(rot_z(0.3) @ rot_x(1.0), [1.0, -2.0, 3.0])
    assert_allclose(invert_transform(transform) @ transform, np.eye(4), atol=1e-12)
    point = np.array([0.2, 0.4, -0.1])
    assert_allclose(transform_point(invert_transform(transform), transform_point(transform, point)), point)


def test_to_transform_normalizes_quaternion():
    transform = to_transform(1.0, 2.0, 3.0, 2.0, 0.0, 0.0, 0.0)
    assert_allclose(transform, make_transform(np.eye(3), [1.0, 2.0, 3.0]))
    with pytest.raises(ValueError):
        to_transform(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


def test_hat_and_check_are_inverse():
    u = np.array([0.1, -0.2, 0.3, 1.0, 2.0, -3.0])
    matrix = hat(u)
    assert_allclose(matrix[:3, :3], -matrix[:3, :3].T)
    assert_allclose(matrix[3], np.zeros(4))
    assert_allclose(check(matrix), u)


def test_check_keeps_only_the_skew_part():
    matrix = hat([0.1, 0.2, 0.3, 0.0, 0.0, 0.0])
    matrix[:3, :3] += np.diag([5.0, 6.0, 7.0])
    assert_allclose(check(matrix), [0.1, 0.2, 0.3, 0.0, 0.0, 0.0])


def test_adjoint_conjugates_tangent_vectors():
    transform = make_transform(rot_y(0.4) @ rot_z(-1.2), [0.5, -1.0, 2.0])
    u = np.array([0.3, -0.1, 0.2, 0.7, 0.4, -0.6])
    assert_allclose(hat(adjoint(transform) @ u), transform @ hat(u) @ invert_transform(transform), atol=1e-12)


def test_normalize_leaves_zero_vector():
    assert_allclose(normalize(np.zeros(3)), np.zeros(3))
    assert_allclose(normalize(np.array([3.0, 0.0, 4.0])), [0.6, 0.0, 0.8])


def test_transforms_accept_dual_scalars():
    """The particle to transform to particle chain has an identity Jacobian"""
    particle = [0.2, -0.1, 0.4, 0.3, 0.2, -0.5]
    values, jac = dual.jacobian(lambda p: transform_to_particle(particle_to_transform(p)), particle)
    assert_allclose(values, particle, atol=1e-12)
    assert_allclose(jac, np.eye(6), atol=1e-10)
