"""Pose and covariance marshalling."""
import json
import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from posedistribution.distribution import (
    PoseWithCovariance,
    array_36_to_matrix_6x6,
    matrix_6x6_to_array_36,
    particle_to_pose,
    pose_to_particle,
    propagate_covariance,
    transform_covariance,
)
from posedistribution.geometry.transforms import (
    adjoint,
    angle_axis_matrix,
    check,
    hat,
    invert_transform,
    make_transform,
    particle_to_transform,
)


def test_covariance_flattening_is_row_major():
    matrix = np.arange(36, dtype=float).reshape(6, 6)
    flat = matrix_6x6_to_array_36(matrix)
    assert flat[6 * 2 + 5] == matrix[2, 5]
    assert flat[6 * 5 + 2] == matrix[5, 2]
    assert_allclose(array_36_to_matrix_6x6(flat), matrix)


def test_flattening_rejects_wrong_sizes():
    with pytest.raises(ValueError):
        array_36_to_matrix_6x6([0.0] * 35)
    with pytest.raises(ValueError):
        matrix_6x6_to_array_36(np.zeros((5, 5)))


def test_pose_to_particle_rejects_zero_quaternion():
    with pytest.raises(ValueError, match="non-zero norm"):
        pose_to_particle((0.0, 0.0, 0.0), (0.0, 0.0, 0.0, 0.0))


@pytest.mark.parametrize("position, quaternion", [
    ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0, 0.0)),
    ((1.0, -2.0, 0.5), (math.cos(0.3), 0.0, 0.0, math.sin(0.3))),
    ((0.3, 0.1, -0.7), (0.7, 0.1, -0.5, 0.3)),
])
def test_pose_round_trip(position, quaternion):
    quaternion = np.array(quaternion) / np.linalg.norm(quaternion)
    new_position, new_quaternion = particle_to_pose(pose_to_particle(position, quaternion))
    assert_allclose(new_position, position)
    # q and -q are the same rotation
    sign = np.sign(np.dot(new_quaternion, quaternion))
    assert_allclose(sign * np.array(new_quaternion), quaternion, atol=1e-12)


def test_propagate_covariance_symmetrizes():
    jacobian = np.diag([1.0, 2.0, 0.0, 1.0, 1.0, 3.0])
    covariance = np.eye(6)
    covariance[0, 1] = 0.1
    covariance[1, 0] = 0.1 + 1e-15
    result = propagate_covariance(jacobian, covariance)
    assert_allclose(result, result.T, atol=0.0)
    assert result[5, 5] == pytest.approx(9.0)
    assert result[2, 2] == 0.0


def test_transform_covariance_matches_conjugated_samples():
    transform = make_transform(angle_axis_matrix(0.7, np.array([0.0, 0.6, 0.8])), [1.0, 0.5, -0.3])
    rng = np.random.default_rng(11)
    samples = rng.normal(size=(4, 6))
    covariance = samples.T @ samples
    moved = np.array([check(transform @ hat(u) @ invert_transform(transform)) for u in samples])
    assert_allclose(transform_covariance(transform, covariance), moved.T @ moved, atol=1e-10)
    assert_allclose(transform_covariance(np.eye(4), covariance), covariance, atol=1e-12)
    assert_allclose(adjoint(np.eye(4)), np.eye(6))


def test_pose_with_covariance_particle_round_trip():
    particle = np.array([0.2, -0.1, 0.4, 0.3, -0.2, 1.1])
    covariance = np.diag(np.arange(1.0, 7.0))
    pose = PoseWithCovariance.from_particle(particle, covariance)
    new_particle, new_covariance = pose.to_particle()
    assert_allclose(new_particle, particle, atol=1e-12)
    assert_allclose(new_covariance, covariance)


def test_pose_with_covariance_transform_round_trip():
    transform = particle_to_transform([0.5, 0.0, -0.25, -0.4, 0.3, 2.0])
    pose = PoseWithCovariance.from_transform(transform, np.eye(6))
    assert_allclose(pose.to_transform(), transform, atol=1e-12)


def test_pose_with_covariance_json():
    pose = PoseWithCovariance(position=(1.0, 2.0, 3.0), covariance=list(np.eye(6).ravel()))
    restored = PoseWithCovariance.from_dict(json.loads(json.dumps(pose.to_dict())))
    assert restored == pose

    with pytest.raises(ValueError, match="position"):
        PoseWithCovariance.from_dict({"orientation": [1.0, 0.0, 0.0, 0.0], "covariance": [0.0] * 36})
    with pytest.raises(ValueError):
        PoseWithCovariance(covariance=[0.0] * 3)
