"""Errors raised while predicting the pose distribution after placing."""


class PlacementError(RuntimeError):
    """Base class for failures of a placement computation."""


class DegenerateRotationAxis(PlacementError):
    """
    Raised when a toppling stage has no unique rotation axis.

    The center of gravity lies on the candidate axis line, so the object is
    balanced on fewer contact points than the stage expects. Only raised when the
    caller asks for strict balance checking.
    """

    def __init__(self, stage: int) -> None:
        ordinal = {1: "first", 2: "second"}.get(stage, f"#{stage}")
        super().__init__(f"Balanced at the {ordinal} rotation")
        self.stage = stage


class UnstablePlacement(PlacementError):
    """Raised when the resting configuration is not statically stable."""

    def __init__(self, vertex_ids: tuple[int, int, int]) -> None:
        super().__init__(f"Unstable after placing (contact vertices {vertex_ids})")
        self.vertex_ids = vertex_ids


class InternalInconsistency(PlacementError, AssertionError):
    """
    Raised when the Lie-form residual at zero perturbation is not negligible.

    The mean pose computed from the contact solver must be the fixed point of the
    placement kinematics; a large residual means the two disagree.
    """

    def __init__(self, residual_norm: float, tolerance: float) -> None:
        super().__init__(
            f"Residual at zero perturbation is {residual_norm:.3e} (tolerance {tolerance:.1e})"
        )
        self.residual_norm = residual_norm
        self.tolerance = tolerance
