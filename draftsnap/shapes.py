"""Shape variants read by the pipeline and their geometry capabilities.

Shapes are owned by the host editor; this module only reads them.  Every
capability dispatches over the closed set of variants below and raises
``TypeError`` for anything else, so adding a variant means touching each
capability on purpose.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

import numpy as np

from . import geometry as geo
from .geometry import Segment
from .types import Bounds, Point

TEXT_CHAR_WIDTH = 0.6
_ELLIPSE_SAMPLES = 128
_ELLIPSE_REFINE_STEPS = 24


@dataclass(frozen=True)
class _ShapeBase:
    id: str
    drawing_id: str = "default"
    layer_id: str = "0"
    visible: bool = True
    locked: bool = False


@dataclass(frozen=True)
class LineShape(_ShapeBase):
    start: Point = Point(0.0, 0.0)
    end: Point = Point(0.0, 0.0)
    kind: str = field(default="line", init=False)


@dataclass(frozen=True)
class RectangleShape(_ShapeBase):
    top_left: Point = Point(0.0, 0.0)
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0
    kind: str = field(default="rectangle", init=False)


@dataclass(frozen=True)
class CircleShape(_ShapeBase):
    center: Point = Point(0.0, 0.0)
    radius: float = 0.0
    kind: str = field(default="circle", init=False)


@dataclass(frozen=True)
class ArcShape(_ShapeBase):
    """Counter-clockwise arc from ``start_angle`` to ``end_angle`` (radians)."""

    center: Point = Point(0.0, 0.0)
    radius: float = 0.0
    start_angle: float = 0.0
    end_angle: float = 0.0
    kind: str = field(default="arc", init=False)


@dataclass(frozen=True)
class PolylineShape(_ShapeBase):
    points: Tuple[Point, ...] = ()
    closed: bool = False
    kind: str = field(default="polyline", init=False)


@dataclass(frozen=True)
class EllipseShape(_ShapeBase):
    center: Point = Point(0.0, 0.0)
    radius_x: float = 0.0
    radius_y: float = 0.0
    rotation: float = 0.0
    kind: str = field(default="ellipse", init=False)


@dataclass(frozen=True)
class TextShape(_ShapeBase):
    position: Point = Point(0.0, 0.0)
    text: str = ""
    font_size: float = 10.0
    alignment: str = "left"
    line_height: float = 1.2
    kind: str = field(default="text", init=False)


@dataclass(frozen=True)
class BeamShape(_ShapeBase):
    """Structural beam drawn along its centerline ``start``-``end``."""

    start: Point = Point(0.0, 0.0)
    end: Point = Point(0.0, 0.0)
    flange_width: float = 0.0
    kind: str = field(default="beam", init=False)


@dataclass(frozen=True)
class PointShape(_ShapeBase):
    position: Point = Point(0.0, 0.0)
    kind: str = field(default="point", init=False)


Shape = Union[
    LineShape,
    RectangleShape,
    CircleShape,
    ArcShape,
    PolylineShape,
    EllipseShape,
    TextShape,
    BeamShape,
    PointShape,
]

SHAPE_TYPES = (
    LineShape,
    RectangleShape,
    CircleShape,
    ArcShape,
    PolylineShape,
    EllipseShape,
    TextShape,
    BeamShape,
    PointShape,
)


def _unsupported(shape: object) -> TypeError:
    return TypeError(f"unsupported shape type {type(shape).__name__}")


def rectangle_corners(rect: RectangleShape) -> Tuple[Point, Point, Point, Point]:
    x, y = rect.top_left
    corners = (
        Point(x, y),
        Point(x + rect.width, y),
        Point(x + rect.width, y + rect.height),
        Point(x, y + rect.height),
    )
    if not rect.rotation:
        return corners
    pivot = Point(x + rect.width * 0.5, y + rect.height * 0.5)
    return tuple(geo.rotate(c, rect.rotation, pivot) for c in corners)  # type: ignore[return-value]


def text_bounds(text: TextShape) -> Optional[Bounds]:
    if not text.text:
        return None
    lines = text.text.split("\n")
    longest = max(len(line) for line in lines)
    approx_width = max(longest * text.font_size * TEXT_CHAR_WIDTH, text.font_size * 2.0)
    height = len(lines) * text.font_size * text.line_height
    min_x = text.position[0]
    if text.alignment == "center":
        min_x -= approx_width / 2.0
    elif text.alignment == "right":
        min_x -= approx_width
    return Bounds(min_x, text.position[1], min_x + approx_width, text.position[1] + height)


def _bounds_of_points(points) -> Bounds:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return Bounds(min(xs), min(ys), max(xs), max(ys))


def _bounds_edges(bounds: Bounds) -> List[Segment]:
    corners = [
        Point(bounds.min_x, bounds.min_y),
        Point(bounds.max_x, bounds.min_y),
        Point(bounds.max_x, bounds.max_y),
        Point(bounds.min_x, bounds.max_y),
    ]
    return [Segment(corners[i], corners[(i + 1) % 4]) for i in range(4)]


def shape_bounds(shape: Shape) -> Optional[Bounds]:
    """Axis-aligned box fully containing the shape, ``None`` if it has no extent."""

    if isinstance(shape, LineShape):
        return _bounds_of_points((shape.start, shape.end))
    if isinstance(shape, BeamShape):
        return _bounds_of_points((shape.start, shape.end)).expanded(abs(shape.flange_width) * 0.5)
    if isinstance(shape, RectangleShape):
        return _bounds_of_points(rectangle_corners(shape))
    if isinstance(shape, (CircleShape, ArcShape)):
        cx, cy = shape.center
        r = abs(shape.radius)
        return Bounds(cx - r, cy - r, cx + r, cy + r)
    if isinstance(shape, EllipseShape):
        cos_r = math.cos(shape.rotation)
        sin_r = math.sin(shape.rotation)
        a = abs(shape.radius_x)
        b = abs(shape.radius_y)
        half_w = math.hypot(a * cos_r, b * sin_r)
        half_h = math.hypot(a * sin_r, b * cos_r)
        cx, cy = shape.center
        return Bounds(cx - half_w, cy - half_h, cx + half_w, cy + half_h)
    if isinstance(shape, PolylineShape):
        if not shape.points:
            return None
        return _bounds_of_points(shape.points)
    if isinstance(shape, TextShape):
        return text_bounds(shape)
    if isinstance(shape, PointShape):
        return _bounds_of_points((shape.position,))
    raise _unsupported(shape)


def shape_segments(shape: Shape) -> List[Segment]:
    """Straight edges of the shape used for midpoint/intersection/perpendicular snaps."""

    if isinstance(shape, (LineShape, BeamShape)):
        return [Segment(shape.start, shape.end)]
    if isinstance(shape, RectangleShape):
        corners = rectangle_corners(shape)
        return [Segment(corners[i], corners[(i + 1) % 4]) for i in range(4)]
    if isinstance(shape, PolylineShape):
        pts = shape.points
        segments = [Segment(pts[i], pts[i + 1]) for i in range(len(pts) - 1)]
        if shape.closed and len(pts) > 2:
            segments.append(Segment(pts[-1], pts[0]))
        return segments
    if isinstance(shape, (CircleShape, ArcShape, EllipseShape, TextShape, PointShape)):
        return []
    raise _unsupported(shape)


def arc_contains_angle(arc: ArcShape, angle: float) -> bool:
    """``True`` when ``angle`` lies on the counter-clockwise sweep of ``arc``."""

    two_pi = 2.0 * math.pi
    sweep = (arc.end_angle - arc.start_angle) % two_pi
    if sweep == 0.0 and arc.end_angle != arc.start_angle:
        return True
    return (angle - arc.start_angle) % two_pi <= sweep + 1e-12


def arc_endpoints(arc: ArcShape) -> Tuple[Point, Point]:
    return (
        geo.from_polar(arc.radius, arc.start_angle, arc.center),
        geo.from_polar(arc.radius, arc.end_angle, arc.center),
    )


def arc_midpoint(arc: ArcShape) -> Point:
    sweep = (arc.end_angle - arc.start_angle) % (2.0 * math.pi)
    return geo.from_polar(arc.radius, arc.start_angle + sweep * 0.5, arc.center)


def ellipse_point(ellipse: EllipseShape, t: float) -> Point:
    local = Point(ellipse.radius_x * math.cos(t), ellipse.radius_y * math.sin(t))
    return geo.add(ellipse.center, geo.rotate(local, ellipse.rotation))


def ellipse_axis_points(ellipse: EllipseShape) -> Tuple[Point, ...]:
    return tuple(ellipse_point(ellipse, k * math.pi * 0.5) for k in range(4))


def terminal_points(shape: Shape) -> List[Point]:
    """Vertices offered as endpoint snaps."""

    if isinstance(shape, (LineShape, BeamShape)):
        return [geo.as_point(shape.start), geo.as_point(shape.end)]
    if isinstance(shape, RectangleShape):
        return list(rectangle_corners(shape))
    if isinstance(shape, PolylineShape):
        return [geo.as_point(p) for p in shape.points]
    if isinstance(shape, ArcShape):
        return list(arc_endpoints(shape))
    if isinstance(shape, EllipseShape):
        return list(ellipse_axis_points(shape))
    if isinstance(shape, (TextShape, PointShape)):
        return [geo.as_point(shape.position)]
    if isinstance(shape, CircleShape):
        return []
    raise _unsupported(shape)


def midpoints(shape: Shape) -> List[Point]:
    if isinstance(shape, ArcShape):
        return [arc_midpoint(shape)]
    if isinstance(shape, SHAPE_TYPES):
        return [geo.segment_midpoint(seg) for seg in shape_segments(shape) if geo.segment_length(seg) > 0.0]
    raise _unsupported(shape)


def center_point(shape: Shape) -> Optional[Point]:
    if isinstance(shape, (CircleShape, ArcShape, EllipseShape)):
        return geo.as_point(shape.center)
    if isinstance(shape, RectangleShape):
        corners = rectangle_corners(shape)
        return geo.midpoint(corners[0], corners[2])
    if isinstance(shape, (LineShape, BeamShape, PolylineShape, TextShape, PointShape)):
        return None
    raise _unsupported(shape)


def _nearest_on_segments(segments: List[Segment], point: Point) -> Optional[Point]:
    best: Optional[Point] = None
    best_d = math.inf
    for seg in segments:
        candidate = geo.closest_point_on_segment(seg, point)
        d = geo.distance_squared(candidate, point)
        if d < best_d:
            best, best_d = candidate, d
    return best


def _nearest_on_ellipse(ellipse: EllipseShape, point: Point) -> Point:
    # Work in the ellipse frame, sample the parameter, then refine by bisection
    # on the bracket around the best sample.
    local = geo.rotate(geo.subtract(point, ellipse.center), -ellipse.rotation)
    a = ellipse.radius_x
    b = ellipse.radius_y
    ts = np.linspace(0.0, 2.0 * math.pi, _ELLIPSE_SAMPLES, endpoint=False)
    d2 = (a * np.cos(ts) - local[0]) ** 2 + (b * np.sin(ts) - local[1]) ** 2
    idx = int(np.argmin(d2))
    step = 2.0 * math.pi / _ELLIPSE_SAMPLES
    lo = ts[idx] - step
    hi = ts[idx] + step

    def _dist2(t: float) -> float:
        return (a * math.cos(t) - local[0]) ** 2 + (b * math.sin(t) - local[1]) ** 2

    for _ in range(_ELLIPSE_REFINE_STEPS):
        m1 = lo + (hi - lo) / 3.0
        m2 = hi - (hi - lo) / 3.0
        if _dist2(m1) < _dist2(m2):
            hi = m2
        else:
            lo = m1
    return ellipse_point(ellipse, (lo + hi) * 0.5)


def nearest_point_on_shape(shape: Shape, point: Point) -> Optional[Point]:
    """Closest point on the shape's outline, ``None`` for degenerate outlines."""

    if isinstance(shape, (LineShape, BeamShape, RectangleShape, PolylineShape)):
        return _nearest_on_segments(shape_segments(shape), point)
    if isinstance(shape, CircleShape):
        if shape.radius <= 0.0:
            return None
        if geo.distance(point, shape.center) == 0.0:
            return geo.from_polar(shape.radius, 0.0, shape.center)
        return geo.from_polar(shape.radius, geo.angle_between_points(shape.center, point), shape.center)
    if isinstance(shape, ArcShape):
        if shape.radius <= 0.0:
            return None
        angle = geo.angle_between_points(shape.center, point)
        if geo.distance(point, shape.center) > 0.0 and arc_contains_angle(shape, angle):
            return geo.from_polar(shape.radius, angle, shape.center)
        start, end = arc_endpoints(shape)
        return start if geo.distance_squared(start, point) <= geo.distance_squared(end, point) else end
    if isinstance(shape, EllipseShape):
        if shape.radius_x <= 0.0 or shape.radius_y <= 0.0:
            return None
        return _nearest_on_ellipse(shape, point)
    if isinstance(shape, TextShape):
        bounds = text_bounds(shape)
        if bounds is None:
            return None
        return _nearest_on_segments(_bounds_edges(bounds), point)
    if isinstance(shape, PointShape):
        return geo.as_point(shape.position)
    raise _unsupported(shape)


def distance_to_shape(shape: Shape, point: Point) -> float:
    nearest = nearest_point_on_shape(shape, point)
    if nearest is None:
        return math.inf
    return geo.distance(nearest, point)


def tracking_segment(shape: Shape) -> Optional[Segment]:
    """Segment used as a tracking reference (lines and beams only)."""

    if isinstance(shape, (LineShape, BeamShape)):
        return Segment(shape.start, shape.end)
    return None


__all__ = [
    "ArcShape",
    "BeamShape",
    "CircleShape",
    "EllipseShape",
    "LineShape",
    "PointShape",
    "PolylineShape",
    "RectangleShape",
    "SHAPE_TYPES",
    "Shape",
    "TextShape",
    "arc_contains_angle",
    "arc_endpoints",
    "arc_midpoint",
    "center_point",
    "distance_to_shape",
    "ellipse_axis_points",
    "ellipse_point",
    "midpoints",
    "nearest_point_on_shape",
    "rectangle_corners",
    "shape_bounds",
    "shape_segments",
    "terminal_points",
    "text_bounds",
    "tracking_segment",
]
