import math

import pytest

from graphcalc.geometry import angle_degrees, distance, distance_to_segment, midpoint


def test_right_angle():
    assert angle_degrees((0, 0), (1, 0), (0, 1)) == pytest.approx(90.0, abs=0.1)


def test_straight_and_zero_angles():
    assert angle_degrees((0, 0), (1, 0), (-3, 0)) == pytest.approx(180.0)
    assert angle_degrees((0, 0), (1, 1), (2, 2)) == pytest.approx(0.0, abs=1e-6)
    assert angle_degrees((0, 0), (1e6, 1), (1e6, 1.000001)) == pytest.approx(0.0, abs=1e-9)
    assert angle_degrees((0, 0), (1, 1e-9), (-1, 0)) == pytest.approx(180.0, abs=1e-6)


def test_angle_is_not_directional():
    assert angle_degrees((1, 1), (2, 1), (1, 3)) == pytest.approx(angle_degrees((1, 1), (1, 3), (2, 1)))


def test_zero_length_arm_is_degenerate():
    assert angle_degrees((0, 0), (0, 0), (0, 1)) is None
    assert angle_degrees((2, 2), (3, 3), (2, 2)) is None


def test_distance_and_midpoint():
    assert distance(0, 0, 3, 4) == 5
    assert midpoint(-1, 2, 3, 4) == (1, 3)


def test_distance_to_segment():
    assert distance_to_segment(0, 1, -1, 0, 1, 0) == pytest.approx(1)
    # beyond the end the nearest point is the endpoint
    assert distance_to_segment(4, 4, 0, 0, 1, 0) == pytest.approx(5)
    assert distance_to_segment(2, 0, 1, 1, 1, 1) == pytest.approx(math.sqrt(2))
