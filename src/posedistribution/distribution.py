"""
Pose Distributions
==================
Gaussian pose beliefs and their conversions.

Why is this file needed?
------------------------
1. Marshalling: pose-with-covariance messages carry a position, a (w, x, y, z)
   quaternion and a row-major flattened 6x6 covariance. This module converts
   between that layout and the particle / matrix forms the updaters use.
2. Propagation: first-order covariance propagation through a Jacobian, and
   re-expression of a Lie-form covariance in another frame via the adjoint.

Classes:
    PoseWithCovariance: Message-like container for a pose belief.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Sequence

import numpy as np

from posedistribution.geometry.transforms import (
    adjoint,
    quaternion_to_rpy,
    rotation_matrix_to_quaternion,
    rpy_to_quaternion,
    to_transform,
)

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def _as_6x6(matrix: npt.ArrayLike, name: str) -> npt.NDArray[np.float64]:
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.shape != (6, 6):
        raise ValueError(f"'{name}' must be a 6x6 matrix, got shape {matrix.shape}.")
    return matrix


def array_36_to_matrix_6x6(array: Sequence[float]) -> npt.NDArray[np.float64]:
    """
    Unflatten a row-major covariance: matrix[i, j] = array[6 * i + j].

    Raises:
        ValueError: If the input does not have exactly 36 entries.
    """
    flat = np.asarray(array, dtype=np.float64).ravel()
    if flat.size != 36:
        raise ValueError(f"Expected 36 covariance entries, got {flat.size}.")
    return flat.reshape(6, 6).copy()


def matrix_6x6_to_array_36(matrix: npt.ArrayLike) -> list[float]:
    """Flatten a 6x6 covariance row-major into a list of 36 floats."""
    return _as_6x6(matrix, "matrix").ravel().tolist()


def pose_to_particle(position: Sequence[float], orientation: Sequence[float]) -> npt.NDArray[np.float64]:
    """
    Particle (x, y, z, roll, pitch, yaw) of a position and a (w, x, y, z) quaternion.

    Raises:
        ValueError: If the quaternion has zero norm.
    """
    quaternion = np.asarray(orientation, dtype=np.float64)
    length = np.linalg.norm(quaternion)
    if length == 0.0:
        raise ValueError("Quaternion must have a non-zero norm.")
    quaternion = quaternion / length
    roll, pitch, yaw = quaternion_to_rpy(*quaternion)
    return np.array([position[0], position[1], position[2], roll, pitch, yaw], dtype=np.float64)


def particle_to_pose(particle: Sequence[float]) -> tuple[tuple[float, float, float], tuple[float, float, float, float]]:
    """Position and (w, x, y, z) quaternion of a particle."""
    quaternion = rpy_to_quaternion(particle[3], particle[4], particle[5])
    position = (float(particle[0]), float(particle[1]), float(particle[2]))
    return position, tuple(float(c) for c in quaternion)


def propagate_covariance(jacobian: npt.ArrayLike, covariance: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    First-order propagation J @ C @ J^T, symmetrized against round-off.

    Raises:
        ValueError: If either matrix is not 6x6.
    """
    jacobian = _as_6x6(jacobian, "jacobian")
    covariance = _as_6x6(covariance, "covariance")
    propagated = jacobian @ covariance @ jacobian.T
    return 0.5 * (propagated + propagated.T)


def transform_covariance(transform: npt.ArrayLike, covariance: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    Re-express a Lie-form covariance through a frame change: Ad(T) C Ad(T)^T.

    A left perturbation exp(u) X becomes exp(Ad(T) u) T X after the frame
    change T, so this moves a gripper-frame belief into the world frame with
    T = gripper pose.
    """
    return propagate_covariance(adjoint(transform), covariance)


@dataclass
class PoseWithCovariance:
    """
    A pose belief in message layout.

    Attributes:
        position: (x, y, z).
        orientation: Unit quaternion (w, x, y, z).
        covariance: Row-major 6x6 covariance, 36 entries.
    """
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)
    covariance: list[float] = field(default_factory=lambda: [0.0] * 36)

    def __post_init__(self) -> None:
        if len(self.covariance) != 36:
            raise ValueError(f"Expected 36 covariance entries, got {len(self.covariance)}.")

    @classmethod
    def from_particle(cls, particle: Sequence[float], covariance: npt.ArrayLike) -> PoseWithCovariance:
        position, orientation = particle_to_pose(particle)
        return cls(position, orientation, matrix_6x6_to_array_36(covariance))

    def to_particle(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Particle mean and 6x6 covariance."""
        return pose_to_particle(self.position, self.orientation), self.covariance_matrix()

    @classmethod
    def from_transform(cls, transform: npt.ArrayLike, covariance: npt.ArrayLike) -> PoseWithCovariance:
        transform = np.asarray(transform, dtype=np.float64)
        orientation = tuple(float(c) for c in rotation_matrix_to_quaternion(transform[:3, :3]))
        position = tuple(float(c) for c in transform[:3, 3])
        return cls(position, orientation, matrix_6x6_to_array_36(covariance))

    def to_transform(self) -> npt.NDArray[np.float64]:
        return to_transform(*self.position, *self.orientation)

    def covariance_matrix(self) -> npt.NDArray[np.float64]:
        return array_36_to_matrix_6x6(self.covariance)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["position"] = list(self.position)
        data["orientation"] = list(self.orientation)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PoseWithCovariance:
        try:
            return cls(
                position=tuple(float(v) for v in data["position"]),
                orientation=tuple(float(v) for v in data["orientation"]),
                covariance=[float(v) for v in data["covariance"]],
            )
        except KeyError as exc:
            raise ValueError(f"Missing pose field: {exc.args[0]}") from exc
