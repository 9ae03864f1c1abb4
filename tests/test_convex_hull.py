"""Boundary-inclusive point-in-hull test."""
import numpy as np
import pytest

from posedistribution.geometry.convex_hull import is_inside_hull, spans_area

SQUARE = np.array([[1.0, 1.0], [-1.0, 1.0], [-1.0, -1.0], [1.0, -1.0]])


@pytest.mark.parametrize("query, expected", [
    ((0.0, 0.0), True),
    ((3.0, 3.0), False),
    ((1.0, 0.0), True),
    ((1.0, 1.0), True),
    ((1.0 + 1e-6, 0.0), False),
    ((0.0, -1.0 + 1e-12), True),
])
def test_square_footprint(query, expected):
    assert is_inside_hull(query, SQUARE) is expected


def test_interior_points_do_not_change_the_hull():
    points = np.vstack([SQUARE, [[0.0, 0.0], [0.5, 0.2]]])
    assert is_inside_hull((0.9, -0.9), points)
    assert not is_inside_hull((1.1, 0.0), points)


def test_empty_footprint_contains_nothing():
    assert not is_inside_hull((0.0, 0.0), np.empty((0, 2)))


def test_single_point_footprint():
    points = np.array([[0.5, 0.5], [0.5, 0.5]])
    assert is_inside_hull((0.5, 0.5), points)
    assert not is_inside_hull((0.5, 0.6), points)


def test_collinear_footprint_is_a_segment():
    points = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]])
    assert is_inside_hull((1.5, 1.5), points)
    assert is_inside_hull((2.0, 2.0), points)
    assert not is_inside_hull((2.5, 2.5), points)
    assert not is_inside_hull((1.0, 1.1), points)


@pytest.mark.parametrize("points, expected", [
    (np.zeros((0, 2)), False),
    (np.array([[0.0, 0.0], [1.0, 1.0]]), False),
    (np.array([[0.0, 0.0], [0.0, 0.0], [0.0, 0.0]]), False),
    (np.array([[0.0, 0.0], [1.0, 0.0], [3.0, 0.0]]), False),
    (np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]]), True),
])
def test_spans_area(points, expected):
    assert spans_area(points) is expected
