"""
Dual Numbers
============
Forward-mode automatic differentiation over a generic scalar.

The placement kinematics is written once and evaluated either with plain floats
or with `Dual` scalars. A `Dual` carries a value and the gradient of that value
with respect to every seeded input, so evaluating a function on seeded duals
yields the function value and its Jacobian in one pass.

Vectors and matrices of duals are ordinary numpy arrays with `dtype=object`;
numpy forwards the elementwise arithmetic and `@` to the `Dual` operators.
The transcendental functions below dispatch on the argument type so the same
code path works for both scalar kinds.
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Callable, Union

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

_REAL_TYPES = (int, float, np.integer, np.floating)


class Dual:
    """
    A scalar together with its derivatives with respect to the seeded inputs.
    """
    __slots__ = ("value", "derivatives")

    def __init__(self, value: float, derivatives: npt.ArrayLike) -> None:
        """
        Args:
            value: Function value.
            derivatives: Gradient of the value with respect to the seeded inputs.
        """
        self.value = float(value)
        self.derivatives = np.asarray(derivatives, dtype=np.float64)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(value={self.value}, derivatives={self.derivatives})"

    def __float__(self) -> float:
        return self.value

    # Arithmetic. Arrays are left to numpy (NotImplemented), which then applies
    # the operation elementwise on an object array.

    def __add__(self, other: Any) -> Dual:
        if isinstance(other, Dual):
            return Dual(self.value + other.value, self.derivatives + other.derivatives)
        if isinstance(other, _REAL_TYPES):
            return Dual(self.value + other, self.derivatives)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other: Any) -> Dual:
        if isinstance(other, Dual):
            return Dual(self.value - other.value, self.derivatives - other.derivatives)
        if isinstance(other, _REAL_TYPES):
            return Dual(self.value - other, self.derivatives)
        return NotImplemented

    def __rsub__(self, other: Any) -> Dual:
        if isinstance(other, _REAL_TYPES):
            return Dual(other - self.value, -self.derivatives)
        return NotImplemented

    def __mul__(self, other: Any) -> Dual:
        if isinstance(other, Dual):
            return Dual(
                self.value * other.value,
                self.value * other.derivatives + other.value * self.derivatives,
            )
        if isinstance(other, _REAL_TYPES):
            return Dual(self.value * other, self.derivatives * other)
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, other: Any) -> Dual:
        if isinstance(other, Dual):
            return Dual(
                self.value / other.value,
                (self.derivatives * other.value - self.value * other.derivatives) / (other.value * other.value),
            )
        if isinstance(other, _REAL_TYPES):
            return Dual(self.value / other, self.derivatives / other)
        return NotImplemented

    def __rtruediv__(self, other: Any) -> Dual:
        if isinstance(other, _REAL_TYPES):
            return Dual(other / self.value, -other * self.derivatives / (self.value * self.value))
        return NotImplemented

    def __pow__(self, exponent: Any) -> Dual:
        if isinstance(exponent, _REAL_TYPES):
            return Dual(self.value ** exponent, exponent * self.value ** (exponent - 1) * self.derivatives)
        return NotImplemented

    def __neg__(self) -> Dual:
        return Dual(-self.value, -self.derivatives)

    def __pos__(self) -> Dual:
        return self

    def __abs__(self) -> Dual:
        # The kink at zero takes the positive branch.
        if self.value < 0.0:
            return -self
        return self

    # Comparisons only look at values, so branching code behaves the same for
    # floats and duals.

    def __lt__(self, other: Any) -> bool:
        return self.value < value_of(other)

    def __le__(self, other: Any) -> bool:
        return self.value <= value_of(other)

    def __gt__(self, other: Any) -> bool:
        return self.value > value_of(other)

    def __ge__(self, other: Any) -> bool:
        return self.value >= value_of(other)


Scalar = Union[float, Dual]


def value_of(x: Any) -> float:
    """Plain float value of a float or a dual."""
    if isinstance(x, Dual):
        return x.value
    return float(x)


def _derivatives_of(x: Any) -> npt.NDArray[np.float64] | float:
    if isinstance(x, Dual):
        return x.derivatives
    return 0.0


def sqrt(x: Scalar) -> Scalar:
    if isinstance(x, Dual):
        root = math.sqrt(x.value)
        if root == 0.0:
            return Dual(root, np.zeros_like(x.derivatives))
        return Dual(root, x.derivatives / (2.0 * root))
    return math.sqrt(x)


def sin(x: Scalar) -> Scalar:
    if isinstance(x, Dual):
        return Dual(math.sin(x.value), math.cos(x.value) * x.derivatives)
    return math.sin(x)


def cos(x: Scalar) -> Scalar:
    if isinstance(x, Dual):
        return Dual(math.cos(x.value), -math.sin(x.value) * x.derivatives)
    return math.cos(x)


def asin(x: Scalar) -> Scalar:
    if isinstance(x, Dual):
        return Dual(math.asin(x.value), x.derivatives / math.sqrt(1.0 - x.value * x.value))
    return math.asin(x)


def atan2(y: Scalar, x: Scalar) -> Scalar:
    """
    Two-argument arctangent for floats and duals.

    d atan2(y, x) = (x dy - y dx) / (x^2 + y^2); the derivative at the origin is
    taken as zero.
    """
    if not isinstance(y, Dual) and not isinstance(x, Dual):
        return math.atan2(y, x)

    y_value, x_value = value_of(y), value_of(x)
    angle = math.atan2(y_value, x_value)
    denominator = x_value * x_value + y_value * y_value
    size = (y if isinstance(y, Dual) else x).derivatives.shape
    if denominator == 0.0:
        return Dual(angle, np.zeros(size))
    derivatives = (x_value * _derivatives_of(y) - y_value * _derivatives_of(x)) / denominator
    return Dual(angle, np.broadcast_to(derivatives, size))


def fabs(x: Scalar) -> Scalar:
    return abs(x)


def seed(x: npt.ArrayLike) -> npt.NDArray[np.object_]:
    """
    Turn a point into independent dual variables.

    Args:
        x: Point of evaluation, flattened to 1-D.

    Returns:
        Object array where entry i has value x[i] and derivative e_i.
    """
    values = np.asarray(x, dtype=np.float64).ravel()
    identity = np.eye(values.size)
    seeded = np.empty(values.size, dtype=object)
    for i, value in enumerate(values):
        seeded[i] = Dual(value, identity[i])
    return seeded


def jacobian(
    func: Callable[[npt.NDArray[np.object_]], npt.ArrayLike],
    x: npt.ArrayLike,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Evaluate a vector function and its Jacobian by forward-mode differentiation.

    Args:
        func: Function of a 1-D array returning a 1-D array. It must only use
            operations supported by `Dual` (arithmetic, comparisons and the
            functions of this module).
        x: Point of evaluation.

    Returns:
        The function value at x and the (m, n) Jacobian matrix.
    """
    seeded = seed(x)
    outputs = np.asarray(func(seeded), dtype=object).ravel()

    values = np.array([value_of(output) for output in outputs], dtype=np.float64)
    jac = np.zeros((outputs.size, seeded.size), dtype=np.float64)
    for i, output in enumerate(outputs):
        if isinstance(output, Dual):
            jac[i] = output.derivatives
    return values, jac
