"""Exact point-near-shape tests used to prune quad-tree candidates."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from . import geometry as geo
from .shapes import (
    ArcShape,
    BeamShape,
    CircleShape,
    EllipseShape,
    LineShape,
    PointShape,
    PolylineShape,
    RectangleShape,
    Shape,
    TextShape,
    arc_contains_angle,
    shape_segments,
    text_bounds,
)
from .spatial import QuadTree
from .types import Point

DEFAULT_PICK_TOLERANCE = 5.0
# Extra angular slack (radians) when deciding whether a point falls on an arc.
ARC_ANGLE_SLACK = 0.1


def _near_segments(point: Point, shape: Shape, tolerance: float) -> bool:
    return any(geo.distance_to_segment(seg, point) <= tolerance for seg in shape_segments(shape))


def _near_arc(point: Point, arc: ArcShape, tolerance: float) -> bool:
    dist = geo.distance(point, arc.center)
    if abs(dist - arc.radius) > tolerance:
        return False
    angle = geo.angle_between_points(arc.center, point)
    return (
        arc_contains_angle(arc, angle)
        or arc_contains_angle(arc, angle + ARC_ANGLE_SLACK)
        or arc_contains_angle(arc, angle - ARC_ANGLE_SLACK)
    )


def _near_ellipse(point: Point, ellipse: EllipseShape, tolerance: float) -> bool:
    if ellipse.radius_x <= 0.0 or ellipse.radius_y <= 0.0:
        return False
    local = geo.rotate(geo.subtract(point, ellipse.center), -ellipse.rotation)
    value = (local[0] / ellipse.radius_x) ** 2 + (local[1] / ellipse.radius_y) ** 2
    avg_radius = (ellipse.radius_x + ellipse.radius_y) / 2.0
    return abs(math.sqrt(value) - 1.0) <= tolerance / avg_radius


def is_point_near_shape(point: Point, shape: Shape, tolerance: float = DEFAULT_PICK_TOLERANCE) -> bool:
    """Exact hit test against the shape outline (text: its box)."""

    if isinstance(shape, (LineShape, BeamShape)):
        if geo.distance_squared(shape.start, shape.end) == 0.0:
            return geo.distance(point, shape.start) <= tolerance
        return _near_segments(point, shape, tolerance)
    if isinstance(shape, (RectangleShape, PolylineShape)):
        return _near_segments(point, shape, tolerance)
    if isinstance(shape, CircleShape):
        return abs(geo.distance(point, shape.center) - shape.radius) <= tolerance
    if isinstance(shape, ArcShape):
        return _near_arc(point, shape, tolerance)
    if isinstance(shape, EllipseShape):
        return _near_ellipse(point, shape, tolerance)
    if isinstance(shape, TextShape):
        bounds = text_bounds(shape)
        return bounds is not None and bounds.expanded(tolerance).contains_point(point)
    if isinstance(shape, PointShape):
        return geo.distance(point, shape.position) <= tolerance
    return False


def find_shape_at_point(
    point: Point,
    index: QuadTree,
    tolerance: float = DEFAULT_PICK_TOLERANCE,
    *,
    include_locked: bool = True,
) -> Optional[str]:
    """Return the id of the topmost shape under ``point``, if any."""

    candidates: Sequence[Shape] = index.query_shapes(point, tolerance)
    for shape in reversed(candidates):
        if not include_locked and shape.locked:
            continue
        if is_point_near_shape(point, shape, tolerance):
            return shape.id
    return None


__all__ = [
    "ARC_ANGLE_SLACK",
    "DEFAULT_PICK_TOLERANCE",
    "find_shape_at_point",
    "is_point_near_shape",
]
