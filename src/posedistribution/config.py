"""
Numerical Tolerances
====================
This module serves as the central registry for the numerical constants used by
the contact solver, the stability test and the distribution updaters.

Why is this file needed?
------------------------
1. Consistency: the same robust-argmin epsilon is used by every toppling stage,
   so near-ties resolve the same way everywhere.
2. Tuning: contact detection, the ground footprint, the hull test and the
   Lie-form self-check all read their tolerance from a `Tolerances` instance, so a
   caller can tighten one of them without touching the others.

Exports:
    EPS (float): Robust comparison epsilon.
    LARGE_EPS (float): Bound on the Lie-form residual at zero perturbation.
    UNREACHABLE_ANGLE (float): Angle assigned to vertices already on the ground.
    Tolerances: Frozen dataclass grouping the per-stage tolerances.
    DEFAULT_TOLERANCES (Tolerances): The shared defaults.
"""
from __future__ import annotations

from dataclasses import dataclass

EPS: float = 1e-9
LARGE_EPS: float = 1e-3
UNREACHABLE_ANGLE: float = 1e9


@dataclass(frozen=True)
class Tolerances:
    """
    Per-stage tolerances. All stages share `EPS` unless overridden.
    """
    contact: float = EPS
    """Robust argmin margin and degenerate rotation axis threshold."""

    ground: float = EPS
    """Height band above the lowest vertex that still counts as touching the ground."""

    hull: float = EPS
    """Boundary tolerance of the point-in-convex-hull test."""

    consistency: float = LARGE_EPS
    """Maximum norm of the Lie-form residual at zero perturbation."""

    def __post_init__(self) -> None:
        for name in ("contact", "ground", "hull", "consistency"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"Tolerance '{name}' must be non-negative, got {getattr(self, name)}.")


DEFAULT_TOLERANCES = Tolerances()
