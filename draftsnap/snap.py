"""Object snap detection: the single best snap point near the cursor."""

from __future__ import annotations

import logging
import math
from itertools import combinations
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from . import geometry as geo
from .config import coerce_snap_types
from .geometry import Segment
from .shapes import (
    ArcShape,
    CircleShape,
    Shape,
    arc_contains_angle,
    center_point,
    midpoints,
    nearest_point_on_shape,
    shape_bounds,
    shape_segments,
    terminal_points,
)
from .spatial import QuadTree
from .types import IN_PROGRESS_SOURCE_ID, Bounds, Point, SnapPoint, SnapType, snap_rank
from .validate import is_degenerate, iter_valid_shapes

logger = logging.getLogger(__name__)

TIE_EPS = 1e-6

SNAP_LABELS: Dict[SnapType, str] = {
    SnapType.ENDPOINT: "Endpoint",
    SnapType.MIDPOINT: "Midpoint",
    SnapType.CENTER: "Center",
    SnapType.INTERSECTION: "Intersection",
    SnapType.PERPENDICULAR: "Perpendicular",
    SnapType.TANGENT: "Tangent",
    SnapType.NEAREST: "Nearest",
    SnapType.GRID: "Grid",
}

# Marker glyph names the canvas draws for each snap kind.
SNAP_SYMBOLS: Dict[SnapType, str] = {
    SnapType.ENDPOINT: "square",
    SnapType.MIDPOINT: "triangle",
    SnapType.CENTER: "circle",
    SnapType.INTERSECTION: "cross",
    SnapType.PERPENDICULAR: "perpendicular",
    SnapType.TANGENT: "tangent",
    SnapType.NEAREST: "hourglass",
    SnapType.GRID: "plus",
}

SnapTypes = Iterable[Union[str, SnapType]]


def snap_type_label(snap_type: Union[str, SnapType]) -> str:
    return SNAP_LABELS[SnapType(snap_type)]


def snap_type_symbol(snap_type: Union[str, SnapType]) -> str:
    return SNAP_SYMBOLS[SnapType(snap_type)]


def is_better_snap(candidate: SnapPoint, distance: float, best: Optional[SnapPoint], best_distance: float) -> bool:
    """Closest wins; near-equal distances fall back to ``SNAP_PRIORITY`` order."""

    if best is None:
        return True
    if distance < best_distance - TIE_EPS:
        return True
    if distance > best_distance + TIE_EPS:
        return False
    return snap_rank(candidate.type) < snap_rank(best.type)


class _Best:
    def __init__(self, cursor: Point, tolerance: float) -> None:
        self.cursor = cursor
        self.tolerance = tolerance
        self.snap: Optional[SnapPoint] = None
        self.distance = math.inf

    def offer(self, point: Point, snap_type: SnapType, source_id: Optional[str]) -> None:
        dist = geo.distance(point, self.cursor)
        if not math.isfinite(dist) or dist > self.tolerance:
            return
        candidate = SnapPoint(point=geo.as_point(point), type=snap_type, source_shape_id=source_id)
        if is_better_snap(candidate, dist, self.snap, self.distance):
            self.snap = candidate
            self.distance = dist


def get_shape_snap_points(shape: Shape, enabled: SnapTypes) -> List[SnapPoint]:
    """Cursor-independent snap points (endpoints, midpoints, centers) of ``shape``."""

    snaps = coerce_snap_types(enabled)
    if is_degenerate(shape):
        return []
    points: List[SnapPoint] = []
    if SnapType.ENDPOINT in snaps:
        points.extend(SnapPoint(p, SnapType.ENDPOINT, shape.id) for p in terminal_points(shape))
    if SnapType.MIDPOINT in snaps:
        points.extend(SnapPoint(p, SnapType.MIDPOINT, shape.id) for p in midpoints(shape))
    if SnapType.CENTER in snaps:
        center = center_point(shape)
        if center is not None:
            points.append(SnapPoint(center, SnapType.CENTER, shape.id))
    return points


def _shape_segment_pairs(shapes: Sequence[Shape]) -> Iterator[Tuple[Shape, Segment, Shape, Segment]]:
    owned = [(shape, seg) for shape in shapes for seg in shape_segments(shape) if geo.segment_length(seg) > 0.0]
    for (shape_a, seg_a), (shape_b, seg_b) in combinations(owned, 2):
        if shape_a is shape_b:
            continue
        yield shape_a, seg_a, shape_b, seg_b


def get_intersection_points(shapes: Sequence[Shape]) -> List[SnapPoint]:
    """All pairwise segment intersections between distinct shapes."""

    result: List[SnapPoint] = []
    for shape_a, seg_a, _shape_b, seg_b in _shape_segment_pairs(list(iter_valid_shapes(shapes, logger))):
        hit = geo.segment_intersection(seg_a, seg_b)
        if hit is not None:
            result.append(SnapPoint(hit, SnapType.INTERSECTION, shape_a.id))
    return result


def _perpendicular_points(shape: Shape, cursor: Point, base_point: Optional[Point]) -> List[Point]:
    points: List[Point] = []
    for seg in shape_segments(shape):
        if geo.segment_length(seg) == 0.0:
            continue
        if base_point is None:
            points.append(geo.closest_point_on_segment(seg, cursor))
            continue
        t = geo.parameter_at(seg, base_point)
        if 0.0 <= t <= 1.0:
            points.append(geo.point_at(seg, t))
    if base_point is not None and isinstance(shape, (CircleShape, ArcShape)) and shape.radius > 0.0:
        if geo.distance(base_point, shape.center) > 0.0:
            angle = geo.angle_between_points(shape.center, base_point)
            for candidate_angle in (angle, angle + math.pi):
                if isinstance(shape, ArcShape) and not arc_contains_angle(shape, candidate_angle):
                    continue
                points.append(geo.from_polar(shape.radius, candidate_angle, shape.center))
    return points


def _tangent_points(shape: Shape, base_point: Point) -> List[Point]:
    if not isinstance(shape, (CircleShape, ArcShape)) or shape.radius <= 0.0:
        return []
    points = []
    for p in geo.tangent_points(base_point, shape.center, shape.radius):
        if isinstance(shape, ArcShape):
            if not arc_contains_angle(shape, geo.angle_between_points(shape.center, p)):
                continue
        points.append(p)
    return points


def _grid_point(cursor: Point, grid_size: float) -> Optional[Point]:
    if not (grid_size > 0.0 and math.isfinite(grid_size)):
        return None
    return Point(round(cursor.x / grid_size) * grid_size, round(cursor.y / grid_size) * grid_size)


def _nearby_shapes(
    cursor: Point, shapes: Sequence[Shape], tolerance: float, index: Optional[QuadTree]
) -> List[Shape]:
    if index is not None:
        return index.query_shapes(cursor, tolerance)
    window = Bounds.around(cursor, tolerance)
    nearby: List[Shape] = []
    for shape in iter_valid_shapes(shapes, logger):
        bounds = shape_bounds(shape)
        if bounds is not None and bounds.intersects(window):
            nearby.append(shape)
    return nearby


def find_nearest_snap_point(
    cursor: Sequence[float],
    shapes: Sequence[Shape],
    enabled: SnapTypes,
    tolerance: float,
    grid_size: float,
    base_point: Optional[Sequence[float]] = None,
    index: Optional[QuadTree] = None,
) -> Optional[SnapPoint]:
    """Return the best snap within ``tolerance`` (world units) of ``cursor``.

    When ``index`` is given it replaces the linear scan over ``shapes`` as the
    broad phase.
    """

    snaps = coerce_snap_types(enabled)
    if not snaps or not geo.is_finite_point(cursor) or not (tolerance >= 0.0):
        return None
    cursor = geo.as_point(cursor)
    base = geo.as_point(base_point) if base_point is not None and geo.is_finite_point(base_point) else None
    best = _Best(cursor, tolerance)

    nearby = _nearby_shapes(cursor, shapes, tolerance, index)
    for shape in nearby:
        for snap in get_shape_snap_points(shape, snaps):
            best.offer(snap.point, snap.type, snap.source_shape_id)
        degenerate = is_degenerate(shape)
        if SnapType.PERPENDICULAR in snaps and not degenerate:
            for p in _perpendicular_points(shape, cursor, base):
                best.offer(p, SnapType.PERPENDICULAR, shape.id)
        if SnapType.TANGENT in snaps and base is not None and not degenerate:
            for p in _tangent_points(shape, base):
                best.offer(p, SnapType.TANGENT, shape.id)
        if SnapType.NEAREST in snaps:
            p = nearest_point_on_shape(shape, cursor)
            if p is not None:
                best.offer(p, SnapType.NEAREST, shape.id)

    if SnapType.INTERSECTION in snaps and len(nearby) > 1:
        for shape_a, seg_a, _shape_b, seg_b in _shape_segment_pairs(nearby):
            if geo.distance_to_segment(seg_a, cursor) > tolerance or geo.distance_to_segment(seg_b, cursor) > tolerance:
                continue
            hit = geo.segment_intersection(seg_a, seg_b)
            if hit is not None:
                best.offer(hit, SnapType.INTERSECTION, shape_a.id)

    if SnapType.GRID in snaps:
        grid = _grid_point(cursor, grid_size)
        if grid is not None:
            best.offer(grid, SnapType.GRID, None)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "snap: cursor=%s candidates=%d result=%s",
            cursor,
            len(nearby),
            best.snap.type.value if best.snap else None,
        )
    return best.snap


def find_drawing_point_snap(
    cursor: Sequence[float],
    drawing_points: Sequence[Sequence[float]],
    enabled: SnapTypes,
    tolerance: float,
) -> Optional[SnapPoint]:
    """Snap to the uncommitted vertices/midpoints of the shape being drawn.

    The last vertex is where the rubber band starts, so it and the segment
    being drawn are excluded.  Candidates compete on distance alone.
    """

    snaps = coerce_snap_types(enabled)
    if len(drawing_points) < 2 or not geo.is_finite_point(cursor):
        return None
    cursor = geo.as_point(cursor)
    best: Optional[SnapPoint] = None
    best_dist = math.inf

    if SnapType.ENDPOINT in snaps:
        for vertex in drawing_points[:-1]:
            dist = geo.distance(vertex, cursor)
            if dist <= tolerance and dist < best_dist:
                best_dist = dist
                best = SnapPoint(geo.as_point(vertex), SnapType.ENDPOINT, IN_PROGRESS_SOURCE_ID)

    if SnapType.MIDPOINT in snaps:
        for i in range(len(drawing_points) - 2):
            mid = geo.midpoint(drawing_points[i], drawing_points[i + 1])
            dist = geo.distance(mid, cursor)
            if dist <= tolerance and dist < best_dist:
                best_dist = dist
                best = SnapPoint(mid, SnapType.MIDPOINT, IN_PROGRESS_SOURCE_ID)

    return best


__all__ = [
    "SNAP_LABELS",
    "SNAP_SYMBOLS",
    "TIE_EPS",
    "find_drawing_point_snap",
    "find_nearest_snap_point",
    "get_intersection_points",
    "get_shape_snap_points",
    "is_better_snap",
    "snap_type_label",
    "snap_type_symbol",
]
