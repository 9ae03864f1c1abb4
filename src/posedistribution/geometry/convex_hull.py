"""
Point-in-convex-hull test used for the static stability check.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from posedistribution.config import EPS

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def _inside_segment(query: npt.NDArray[np.float64], points: npt.NDArray[np.float64], eps: float) -> bool:
    """Closed-segment test for a point set whose spread is along one line."""
    origin = points[0]
    offsets = points - origin
    far = offsets[np.argmax(np.einsum("ij,ij->i", offsets, offsets))]
    direction = far / np.linalg.norm(far)
    normal = np.array([-direction[1], direction[0]])

    relative = query - origin
    if abs(relative @ normal) > eps:
        return False
    projections = offsets @ direction
    along = relative @ direction
    return bool(projections.min() - eps <= along <= projections.max() + eps)


def spans_area(ground_points: npt.ArrayLike, eps: float = EPS) -> bool:
    """Whether a planar point set has three points that are not collinear within `eps`."""
    points = np.asarray(ground_points, dtype=np.float64).reshape(-1, 2)
    if points.shape[0] < 3:
        return False

    offsets = points - points[0]
    squared = np.einsum("ij,ij->i", offsets, offsets)
    spread = np.sqrt(squared.max())
    if spread <= eps:
        return False
    direction = offsets[np.argmax(squared)] / spread
    normal = np.array([-direction[1], direction[0]])
    return bool(np.abs(offsets @ normal).max() > eps)


def is_inside_hull(
    query: npt.ArrayLike,
    ground_points: npt.ArrayLike,
    eps: float = EPS,
) -> bool:
    """
    Whether a 2-D query point lies in the convex hull of a planar point set.

    The boundary counts as inside. Degenerate sets are handled explicitly: an
    empty set contains nothing, a single point contains itself and a collinear
    set is treated as a closed segment.

    Args:
        query: The (x, y) point, usually the center of gravity projected onto
            the support plane.
        ground_points: (n, 2) array of footprint points.
        eps: Distance tolerance for the boundary.

    Returns:
        True if the query is within `eps` of the hull.
    """
    q = np.asarray(query, dtype=np.float64).reshape(2)
    points = np.asarray(ground_points, dtype=np.float64).reshape(-1, 2)

    if points.shape[0] == 0:
        return False

    offsets = points - points[0]
    spread = np.sqrt(np.einsum("ij,ij->i", offsets, offsets)).max()
    if spread <= eps:
        return bool(np.linalg.norm(q - points[0]) <= eps)

    direction = offsets[np.argmax(np.einsum("ij,ij->i", offsets, offsets))] / spread
    normal = np.array([-direction[1], direction[0]])
    if np.abs(offsets @ normal).max() <= eps:
        return _inside_segment(q, points, eps)

    try:
        hull = ConvexHull(points)
    except QhullError:
        logger.debug(f"Qhull rejected a nearly flat footprint of {points.shape[0]} points, using segment test.")
        return _inside_segment(q, points, eps)

    # Facet equations are normalized, so this is the signed distance to each edge.
    distances = hull.equations[:, :2] @ q + hull.equations[:, 2]
    return bool(np.all(distances <= eps))
