"""Point, vector and line primitives shared by the snapping pipeline."""

from __future__ import annotations

import math
from typing import NamedTuple, Optional, Sequence, Tuple

from .types import Point

Vec2 = Tuple[float, float]

PARALLEL_EPS = 1e-10
_DENOM_EPS = 1e-12


class Segment(NamedTuple):
    start: Point
    end: Point


def as_point(value: Sequence[float]) -> Point:
    return Point(float(value[0]), float(value[1]))


# ---------------------------------------------------------------------------
# Point / vector operations


def add(a: Vec2, b: Vec2) -> Point:
    return Point(a[0] + b[0], a[1] + b[1])


def subtract(a: Vec2, b: Vec2) -> Point:
    return Point(a[0] - b[0], a[1] - b[1])


def scale(v: Vec2, factor: float) -> Point:
    return Point(v[0] * factor, v[1] * factor)


def dot(a: Vec2, b: Vec2) -> float:
    return a[0] * b[0] + a[1] * b[1]


def cross(a: Vec2, b: Vec2) -> float:
    return a[0] * b[1] - a[1] * b[0]


def length(v: Vec2) -> float:
    return math.hypot(v[0], v[1])


def distance(a: Vec2, b: Vec2) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def distance_squared(a: Vec2, b: Vec2) -> float:
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    return dx * dx + dy * dy


def midpoint(a: Vec2, b: Vec2) -> Point:
    return Point((a[0] + b[0]) * 0.5, (a[1] + b[1]) * 0.5)


def lerp(a: Vec2, b: Vec2, t: float) -> Point:
    return Point(a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def from_polar(length: float, angle: float, origin: Vec2 = (0.0, 0.0)) -> Point:
    return Point(origin[0] + length * math.cos(angle), origin[1] + length * math.sin(angle))


def normalize(v: Vec2) -> Point:
    norm = math.hypot(v[0], v[1])
    if norm == 0.0:
        return Point(0.0, 0.0)
    return Point(v[0] / norm, v[1] / norm)


def perpendicular(v: Vec2) -> Point:
    return Point(-v[1], v[0])


def rotate(p: Vec2, angle: float, center: Vec2 = (0.0, 0.0)) -> Point:
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    dx = p[0] - center[0]
    dy = p[1] - center[1]
    return Point(center[0] + dx * cos_a - dy * sin_a, center[1] + dx * sin_a + dy * cos_a)


def angle_between_points(a: Vec2, b: Vec2) -> float:
    """Bearing from ``a`` to ``b`` in radians."""

    return math.atan2(b[1] - a[1], b[0] - a[0])


def points_equal(a: Vec2, b: Vec2, tolerance: float = PARALLEL_EPS) -> bool:
    return abs(a[0] - b[0]) < tolerance and abs(a[1] - b[1]) < tolerance


def normalize_angle(angle: float) -> float:
    """Wrap ``angle`` into ``(-pi, pi]``."""

    wrapped = math.fmod(angle, 2.0 * math.pi)
    if wrapped <= -math.pi:
        wrapped += 2.0 * math.pi
    elif wrapped > math.pi:
        wrapped -= 2.0 * math.pi
    return wrapped


def is_finite_point(p: object) -> bool:
    try:
        return math.isfinite(p[0]) and math.isfinite(p[1])  # type: ignore[index]
    except (TypeError, LookupError):
        return False


# ---------------------------------------------------------------------------
# Line / segment operations


def direction(line: Segment) -> Point:
    """Unit direction from start to end; ``(1, 0)`` for a zero-length line."""

    dx = line.end[0] - line.start[0]
    dy = line.end[1] - line.start[1]
    norm = math.hypot(dx, dy)
    if norm == 0.0:
        return Point(1.0, 0.0)
    return Point(dx / norm, dy / norm)


def perpendicular_direction(line: Segment) -> Point:
    return perpendicular(direction(line))


def segment_length(line: Segment) -> float:
    return distance(line.start, line.end)


def segment_midpoint(line: Segment) -> Point:
    return midpoint(line.start, line.end)


def segment_angle(line: Segment) -> float:
    return math.atan2(line.end[1] - line.start[1], line.end[0] - line.start[0])


def are_parallel(line1: Segment, line2: Segment, tolerance: float = PARALLEL_EPS) -> bool:
    return abs(cross(direction(line1), direction(line2))) < tolerance


def are_perpendicular(line1: Segment, line2: Segment, tolerance: float = PARALLEL_EPS) -> bool:
    return abs(dot(direction(line1), direction(line2))) < tolerance


def parameter_at(line: Segment, point: Vec2) -> float:
    dx = line.end[0] - line.start[0]
    dy = line.end[1] - line.start[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return 0.0
    return ((point[0] - line.start[0]) * dx + (point[1] - line.start[1]) * dy) / length_sq


def point_at(line: Segment, t: float) -> Point:
    return lerp(line.start, line.end, t)


def closest_point_on_segment(line: Segment, point: Vec2) -> Point:
    if distance_squared(line.start, line.end) == 0.0:
        return as_point(line.start)
    t = min(max(parameter_at(line, point), 0.0), 1.0)
    return point_at(line, t)


def closest_point_on_line(line: Segment, point: Vec2) -> Point:
    if distance_squared(line.start, line.end) == 0.0:
        return as_point(line.start)
    return point_at(line, parameter_at(line, point))


def perpendicular_foot(line: Segment, point: Vec2) -> Point:
    return closest_point_on_line(line, point)


def distance_to_segment(line: Segment, point: Vec2) -> float:
    return distance(point, closest_point_on_segment(line, point))


def distance_to_line(line: Segment, point: Vec2) -> float:
    return distance(point, closest_point_on_line(line, point))


def contains_point(line: Segment, point: Vec2, tolerance: float = 1e-6) -> bool:
    return distance_to_segment(line, point) < tolerance


def _solve_intersection(line1: Segment, line2: Segment) -> Optional[Tuple[float, float]]:
    p1, p2 = line1
    p3, p4 = line2
    denom = (p4[1] - p3[1]) * (p2[0] - p1[0]) - (p4[0] - p3[0]) * (p2[1] - p1[1])
    if abs(denom) < PARALLEL_EPS:
        return None
    ua = ((p4[0] - p3[0]) * (p1[1] - p3[1]) - (p4[1] - p3[1]) * (p1[0] - p3[0])) / denom
    ub = ((p2[0] - p1[0]) * (p1[1] - p3[1]) - (p2[1] - p1[1]) * (p1[0] - p3[0])) / denom
    return ua, ub


def segment_intersection(line1: Segment, line2: Segment) -> Optional[Point]:
    """Intersection of two segments, or ``None`` if parallel or outside either."""

    solved = _solve_intersection(line1, line2)
    if solved is None:
        return None
    ua, ub = solved
    if ua < 0.0 or ua > 1.0 or ub < 0.0 or ub > 1.0:
        return None
    return point_at(line1, ua)


def line_intersection(line1: Segment, line2: Segment) -> Optional[Point]:
    """Intersection of two infinite lines, or ``None`` if parallel."""

    solved = _solve_intersection(line1, line2)
    if solved is None:
        return None
    return point_at(line1, solved[0])


def parallel(line: Segment, offset: float) -> Segment:
    shift = scale(perpendicular_direction(line), offset)
    return Segment(add(line.start, shift), add(line.end, shift))


def perpendicular_through(line: Segment, through: Vec2, length: float = 100.0) -> Segment:
    perp = perpendicular_direction(line)
    half = length * 0.5
    return Segment(
        Point(through[0] - perp[0] * half, through[1] - perp[1] * half),
        Point(through[0] + perp[0] * half, through[1] + perp[1] * half),
    )


def extend(line: Segment, amount: float, from_start: bool = False) -> Segment:
    d = direction(line)
    if from_start:
        return Segment(Point(line.start[0] - d[0] * amount, line.start[1] - d[1] * amount), line.end)
    return Segment(line.start, Point(line.end[0] + d[0] * amount, line.end[1] + d[1] * amount))


def angle_between(line1: Segment, line2: Segment) -> float:
    """Unsigned angle between two lines in ``[0, pi]``."""

    cos_a = dot(direction(line1), direction(line2))
    return math.acos(max(-1.0, min(1.0, cos_a)))


def snap_angle(line: Segment, base_point: Vec2, increment_deg: float = 45.0) -> Segment:
    """Rebuild ``line`` from ``base_point`` at the nearest multiple of ``increment_deg``."""

    step = math.radians(increment_deg)
    snapped = round(segment_angle(line) / step) * step
    return Segment(as_point(base_point), from_polar(segment_length(line), snapped, base_point))


def snap_to_angle(base_point: Vec2, target: Vec2, increment_deg: float = 45.0) -> Point:
    """Rotate ``target`` about ``base_point`` onto the nearest angular increment."""

    if distance_squared(base_point, target) == 0.0:
        return as_point(target)
    return snap_angle(Segment(as_point(base_point), as_point(target)), base_point, increment_deg).end


def circle_from_three_points(p1: Vec2, p2: Vec2, p3: Vec2) -> Optional[Tuple[Point, float]]:
    """Circumscribed circle through three points, ``None`` when collinear."""

    ax, ay = p1
    bx, by = p2
    cx, cy = p3
    d = 2.0 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
    if abs(d) < 1e-4:
        return None
    a_sq = ax * ax + ay * ay
    b_sq = bx * bx + by * by
    c_sq = cx * cx + cy * cy
    ux = (a_sq * (by - cy) + b_sq * (cy - ay) + c_sq * (ay - by)) / d
    uy = (a_sq * (cx - bx) + b_sq * (ax - cx) + c_sq * (bx - ax)) / d
    center = Point(ux, uy)
    return center, distance(center, p1)


def tangent_points(external: Vec2, center: Vec2, radius: float) -> Tuple[Point, ...]:
    """Tangency points on a circle as seen from ``external``.

    Returns an empty tuple when the point lies inside the circle or the circle
    is degenerate; a point on the circumference is its own tangency point.
    """

    if radius <= 0.0:
        return ()
    dist = distance(external, center)
    if dist < radius - _DENOM_EPS:
        return ()
    if dist <= radius + _DENOM_EPS:
        return (as_point(external),)
    base_angle = angle_between_points(center, external)
    offset = math.acos(radius / dist)
    return (
        from_polar(radius, base_angle + offset, center),
        from_polar(radius, base_angle - offset, center),
    )


__all__ = [
    "PARALLEL_EPS",
    "Segment",
    "Vec2",
    "add",
    "angle_between",
    "angle_between_points",
    "are_parallel",
    "are_perpendicular",
    "as_point",
    "circle_from_three_points",
    "closest_point_on_line",
    "closest_point_on_segment",
    "contains_point",
    "cross",
    "direction",
    "distance",
    "distance_squared",
    "distance_to_line",
    "distance_to_segment",
    "dot",
    "extend",
    "from_polar",
    "is_finite_point",
    "length",
    "lerp",
    "line_intersection",
    "midpoint",
    "normalize",
    "normalize_angle",
    "parallel",
    "parameter_at",
    "perpendicular",
    "perpendicular_direction",
    "perpendicular_foot",
    "perpendicular_through",
    "point_at",
    "points_equal",
    "rotate",
    "scale",
    "segment_angle",
    "segment_intersection",
    "segment_length",
    "segment_midpoint",
    "snap_angle",
    "snap_to_angle",
    "subtract",
    "tangent_points",
]
