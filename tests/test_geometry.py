import math

import numpy as np
import pytest

from draftsnap import geometry as geo
from draftsnap.geometry import Segment
from draftsnap.types import Point


def seg(x1, y1, x2, y2):
    return Segment(Point(x1, y1), Point(x2, y2))


def test_direction_is_unit_for_random_lines():
    rng = np.random.default_rng(7)
    for x1, y1, x2, y2 in rng.uniform(-1e4, 1e4, size=(200, 4)):
        if x1 == x2 and y1 == y2:
            continue
        d = geo.direction(seg(x1, y1, x2, y2))
        assert math.isclose(math.hypot(d.x, d.y), 1.0, abs_tol=1e-9)


def test_degenerate_direction_falls_back_to_x_axis():
    assert geo.direction(seg(3, 4, 3, 4)) == Point(1.0, 0.0)
    assert geo.perpendicular_direction(seg(3, 4, 3, 4)) == Point(-0.0, 1.0)


def test_segment_and_line_intersection_agree_inside_both():
    rng = np.random.default_rng(11)
    checked = 0
    for coords in rng.uniform(-100, 100, size=(300, 8)):
        a = seg(*coords[:4])
        b = seg(*coords[4:])
        hit = geo.segment_intersection(a, b)
        if hit is None:
            continue
        line_hit = geo.line_intersection(a, b)
        assert line_hit is not None
        assert hit.x == pytest.approx(line_hit.x, abs=1e-6)
        assert hit.y == pytest.approx(line_hit.y, abs=1e-6)
        checked += 1
    assert checked > 10


def test_parallel_segments_have_no_intersection():
    a = seg(0, 0, 10, 0)
    b = seg(0, 5, 10, 5)
    assert geo.segment_intersection(a, b) is None
    assert geo.line_intersection(a, b) is None


def test_segment_intersection_outside_segment_is_none():
    a = seg(0, 0, 1, 0)
    b = seg(5, -1, 5, 1)
    assert geo.segment_intersection(a, b) is None
    assert geo.line_intersection(a, b) == pytest.approx((5.0, 0.0))


def test_closest_point_on_segment_is_idempotent():
    rng = np.random.default_rng(3)
    for coords in rng.uniform(-50, 50, size=(100, 6)):
        line = seg(*coords[:4])
        p = Point(*coords[4:])
        once = geo.closest_point_on_segment(line, p)
        twice = geo.closest_point_on_segment(line, once)
        assert twice == pytest.approx(once, abs=1e-9)


def test_closest_point_clamps_to_endpoints():
    line = seg(0, 0, 10, 0)
    assert geo.closest_point_on_segment(line, (-5, 3)) == Point(0.0, 0.0)
    assert geo.closest_point_on_segment(line, (15, 3)) == Point(10.0, 0.0)
    assert geo.closest_point_on_line(line, (15, 3)) == Point(15.0, 0.0)


def test_snap_angle_keeps_length():
    line = seg(0, 0, 10, 1)
    snapped = geo.snap_angle(line, (5, 5), 45.0)
    assert snapped.start == Point(5.0, 5.0)
    assert snapped.end == pytest.approx((5.0 + geo.segment_length(line), 5.0))


def test_parallel_offsets_along_perpendicular():
    moved = geo.parallel(seg(0, 0, 10, 0), 3.0)
    assert moved.start == pytest.approx((0.0, 3.0))
    assert moved.end == pytest.approx((10.0, 3.0))


def test_perpendicular_through_is_centered():
    line = geo.perpendicular_through(seg(0, 0, 10, 0), (4, 0), length=20.0)
    assert line.start == pytest.approx((4.0, -10.0))
    assert line.end == pytest.approx((4.0, 10.0))


@pytest.mark.parametrize(
    'angle, expected',
    [(0.0, 0.0), (math.pi, math.pi), (-math.pi, math.pi), (2.5 * math.pi, 0.5 * math.pi)],
)
def test_normalize_angle_wraps_into_half_open_range(angle, expected):
    assert geo.normalize_angle(angle) == pytest.approx(expected)


def test_circle_from_three_points():
    center, radius = geo.circle_from_three_points((1, 0), (0, 1), (-1, 0))
    assert center == pytest.approx((0.0, 0.0), abs=1e-12)
    assert radius == pytest.approx(1.0)
    assert geo.circle_from_three_points((0, 0), (1, 1), (2, 2)) is None


def test_tangent_points_are_perpendicular_to_radius():
    center = Point(0.0, 0.0)
    external = Point(10.0, 0.0)
    points = geo.tangent_points(external, center, 5.0)
    assert len(points) == 2
    for p in points:
        radius_vec = geo.subtract(p, center)
        tangent_vec = geo.subtract(external, p)
        assert geo.dot(radius_vec, tangent_vec) == pytest.approx(0.0, abs=1e-9)
        assert geo.distance(p, center) == pytest.approx(5.0)


def test_tangent_points_from_inside_or_on_circle():
    assert geo.tangent_points((1, 0), (0, 0), 5.0) == ()
    assert geo.tangent_points((5, 0), (0, 0), 5.0) == (Point(5.0, 0.0),)
    assert geo.tangent_points((9, 0), (0, 0), 0.0) == ()


def test_is_finite_point_rejects_nan_and_garbage():
    assert geo.is_finite_point((1.0, 2.0))
    assert not geo.is_finite_point((math.nan, 2.0))
    assert not geo.is_finite_point(None)
    assert not geo.is_finite_point((1.0,))
    assert not geo.is_finite_point({'x': 1.0, 'y': 2.0})
