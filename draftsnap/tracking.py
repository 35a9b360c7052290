"""Alignment tracking: construction rays from the base point.

Reference segments are packed into numpy arrays once per shape set
(``ReferenceSegments``); a pointer event then qualifies every candidate ray in
one vectorised pass and only builds ``TrackingLine`` objects for the few rays
that lie within tolerance of the cursor.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from . import geometry as geo
from .config import TrackingSettings
from .geometry import Segment
from .shapes import Shape, tracking_segment
from .types import Point, TrackingLine, TrackingResult, TrackingType
from .validate import iter_valid_shapes

logger = logging.getLogger(__name__)

# Rays whose directions differ by less than this (radians) are the same ray.
DUPLICATE_ANGLE_EPS = 1e-9
# Two-ray intersections further than this many tolerances from the cursor are
# ignored in favour of the single closest ray.
ACQUISITION_REACH = 2.0

# Ray type codes of the candidate arrays, in candidate order.
_KINDS = (TrackingType.POLAR, TrackingType.PERPENDICULAR, TrackingType.PARALLEL, TrackingType.EXTENSION)
_POLAR, _PERPENDICULAR, _PARALLEL, _EXTENSION = range(4)
_TWO_PI = 2.0 * math.pi


class ReferenceSegments:
    """Line and beam segments that offer parallel, perpendicular and extension rays."""

    def __init__(self, starts: np.ndarray, ends: np.ndarray) -> None:
        self.starts = np.asarray(starts, dtype=float).reshape(-1, 2)
        self.ends = np.asarray(ends, dtype=float).reshape(-1, 2)
        delta = self.ends - self.starts
        self.angles = np.arctan2(delta[:, 1], delta[:, 0])

    @classmethod
    def from_shapes(cls, shapes: Iterable[Shape]) -> "ReferenceSegments":
        starts, ends = [], []
        for shape in iter_valid_shapes(shapes, logger):
            if not shape.visible:
                continue
            seg = tracking_segment(shape)
            if seg is not None and geo.segment_length(seg) > 0.0:
                starts.append(seg.start)
                ends.append(seg.end)
        return cls(np.asarray(starts, dtype=float), np.asarray(ends, dtype=float))

    def __len__(self) -> int:
        return len(self.angles)


References = Union[ReferenceSegments, Iterable[Shape]]


def _as_references(shapes: References) -> ReferenceSegments:
    if isinstance(shapes, ReferenceSegments):
        return shapes
    return ReferenceSegments.from_shapes(shapes)


def make_tracking_line(origin: Sequence[float], angle: float, ray_type: TrackingType) -> TrackingLine:
    angle = geo.normalize_angle(angle)
    return TrackingLine(
        origin=geo.as_point(origin),
        direction=Point(math.cos(angle), math.sin(angle)),
        angle=angle,
        type=ray_type,
    )


def ray_offset(line: TrackingLine, point: Sequence[float]) -> Optional[float]:
    """Perpendicular distance from ``point`` to ``line``; ``None`` if behind its origin."""

    rel = geo.subtract(point, line.origin)
    if geo.dot(rel, line.direction) <= 0.0:
        return None
    return abs(geo.cross(line.direction, rel))


def project_onto_ray(line: TrackingLine, point: Sequence[float]) -> Point:
    along = max(geo.dot(geo.subtract(point, line.origin), line.direction), 0.0)
    return geo.add(line.origin, geo.scale(line.direction, along))


def polar_ray(base: Point, cursor: Point, increment_deg: float) -> TrackingLine:
    """Polar ray at the angular increment closest to the cursor bearing."""

    step = math.radians(increment_deg)
    bearing = geo.angle_between_points(base, cursor)
    return make_tracking_line(base, round(bearing / step) * step, TrackingType.POLAR)


def _wrap(angles: np.ndarray) -> np.ndarray:
    # Same range as geo.normalize_angle: (-pi, pi].
    wrapped = np.mod(angles + math.pi, _TWO_PI) - math.pi
    return np.where(wrapped <= -math.pi, wrapped + _TWO_PI, wrapped)


def _both_directions(angles: np.ndarray) -> np.ndarray:
    return np.column_stack([angles, angles + math.pi]).reshape(-1)


def _extension_arrays(refs: ReferenceSegments, cursor: Point) -> Tuple[np.ndarray, np.ndarray]:
    """Outward ray from the endpoint of each segment nearest the cursor."""

    cur = np.asarray(cursor, dtype=float)
    use_end = ((refs.ends - cur) ** 2).sum(axis=1) <= ((refs.starts - cur) ** 2).sum(axis=1)
    origins = np.where(use_end[:, None], refs.ends, refs.starts)
    angles = refs.angles + np.where(use_end, 0.0, math.pi)
    return origins, angles


def _candidate_arrays(
    cursor: Point, base: Point, refs: ReferenceSegments, settings: TrackingSettings
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Origins, wrapped angles and type codes of every candidate ray, in candidate order."""

    origins: List[np.ndarray] = []
    angles: List[np.ndarray] = []
    kinds: List[np.ndarray] = []

    def add(origin: np.ndarray, values: np.ndarray, kind: int) -> None:
        values = np.asarray(values, dtype=float).reshape(-1)
        origins.append(np.broadcast_to(np.asarray(origin, dtype=float), (values.size, 2)))
        angles.append(values)
        kinds.append(np.full(values.size, kind, dtype=np.int8))

    if settings.polar_enabled:
        add(base, [polar_ray(base, cursor, settings.polar_angle_increment).angle], _POLAR)
    if settings.perpendicular_tracking_enabled:
        perp = refs.angles + math.pi * 0.5
        if settings.source_snap_angle is not None and math.isfinite(settings.source_snap_angle):
            perp = np.concatenate(([settings.source_snap_angle + math.pi * 0.5], perp))
        add(base, _both_directions(perp), _PERPENDICULAR)
    if settings.parallel_tracking_enabled:
        add(base, _both_directions(refs.angles), _PARALLEL)
    if settings.object_tracking_enabled:
        ext_origins, ext_angles = _extension_arrays(refs, cursor)
        add(ext_origins, ext_angles, _EXTENSION)

    if not angles:
        return np.empty((0, 2)), np.empty(0), np.empty(0, dtype=np.int8)
    return np.concatenate(origins), _wrap(np.concatenate(angles)), np.concatenate(kinds)


def _first_unique(origins: np.ndarray, angles: np.ndarray) -> np.ndarray:
    """Indices of the first ray of each (origin, direction) group, in input order."""

    if not angles.size:
        return np.empty(0, dtype=np.int64)
    turn = round(_TWO_PI / DUPLICATE_ANGLE_EPS)
    keys = np.column_stack(
        [
            np.round(origins[:, 0] / geo.PARALLEL_EPS),
            np.round(origins[:, 1] / geo.PARALLEL_EPS),
            np.mod(np.round(angles / DUPLICATE_ANGLE_EPS), turn),
        ]
    )
    _, first = np.unique(keys, axis=0, return_index=True)
    return np.sort(first)


def _to_lines(origins: np.ndarray, angles: np.ndarray, kinds: np.ndarray) -> List[TrackingLine]:
    return [
        make_tracking_line(origin, float(angle), _KINDS[kind])
        for origin, angle, kind in zip(origins.tolist(), angles.tolist(), kinds.tolist())
    ]


def candidate_rays(
    cursor: Point, base: Point, shapes: References, settings: TrackingSettings
) -> List[TrackingLine]:
    """All rays the current settings can offer, deduplicated, before qualification."""

    origins, angles, kinds = _candidate_arrays(cursor, base, _as_references(shapes), settings)
    keep = _first_unique(origins, angles)
    return _to_lines(origins[keep], angles[keep], kinds[keep])


def _qualifying(
    cursor: Point, base: Point, refs: ReferenceSegments, settings: TrackingSettings
) -> Tuple[int, List[TrackingLine]]:
    """Candidate count, and the rays within tolerance ordered by perpendicular offset."""

    origins, angles, kinds = _candidate_arrays(cursor, base, refs, settings)
    rel = np.asarray(cursor, dtype=float) - origins
    cos, sin = np.cos(angles), np.sin(angles)
    ahead = rel[:, 0] * cos + rel[:, 1] * sin > 0.0
    offsets = np.abs(cos * rel[:, 1] - sin * rel[:, 0])
    pinned = (kinds == _POLAR) if settings.ortho_enabled else np.zeros(kinds.size, dtype=bool)
    hits = np.flatnonzero(ahead & (pinned | (offsets <= settings.tracking_tolerance)))

    hits = hits[_first_unique(origins[hits], angles[hits])]
    hits = hits[np.argsort(offsets[hits], kind="stable")]
    return angles.size, _to_lines(origins[hits], angles[hits], kinds[hits])


def _acquire(
    cursor: Point, primary: TrackingLine, others: Sequence[TrackingLine], reach: float
) -> Optional[Tuple[Point, TrackingLine]]:
    """Intersection of ``primary`` with its closest partner from another origin.

    Rays sharing an origin (e.g. a polar and a parallel ray, both through the
    base point) meet only at that origin, so they never pair; the caller then
    falls back to projecting onto ``primary`` alone.
    """

    for other in others:
        if geo.points_equal(primary.origin, other.origin):
            continue
        if abs(geo.cross(primary.direction, other.direction)) < geo.PARALLEL_EPS:
            continue
        hit = geo.line_intersection(
            Segment(primary.origin, geo.add(primary.origin, primary.direction)),
            Segment(other.origin, geo.add(other.origin, other.direction)),
        )
        if hit is None:
            continue
        ahead = (
            geo.dot(geo.subtract(hit, primary.origin), primary.direction) >= 0.0
            and geo.dot(geo.subtract(hit, other.origin), other.direction) >= 0.0
        )
        if ahead and geo.distance(hit, cursor) <= reach:
            return hit, other
        # Only the closest eligible partner is considered.
        return None
    return None


def apply_tracking(
    cursor: Sequence[float],
    base_point: Optional[Sequence[float]],
    shapes: References,
    settings: TrackingSettings,
) -> Optional[TrackingResult]:
    """Align ``cursor`` to the construction rays around ``base_point``.

    One qualifying ray projects the cursor onto it.  When a second ray from a
    different origin also qualifies, the point is their intersection and both
    rays are reported, rays through the base point first.  ``None`` means no
    alignment applies.

    ``shapes`` may be a prebuilt ``ReferenceSegments``; pass one (for instance
    ``QuadTree.tracking_references``) when resolving many events against the
    same drawing.
    """

    if not settings.enabled or base_point is None:
        return None
    if not geo.is_finite_point(cursor) or not geo.is_finite_point(base_point):
        return None
    cursor = geo.as_point(cursor)
    base = geo.as_point(base_point)
    if geo.distance(cursor, base) == 0.0:
        return None

    count, qualifying = _qualifying(cursor, base, _as_references(shapes), settings)
    if not qualifying:
        return None

    primary = qualifying[0]
    reach = ACQUISITION_REACH * max(settings.tracking_tolerance, 0.0)
    acquired = _acquire(cursor, primary, qualifying[1:], reach)
    if acquired is None:
        result = TrackingResult(point=project_onto_ray(primary, cursor), tracking_lines=[primary])
    else:
        point, secondary = acquired
        lines = sorted([primary, secondary], key=lambda ray: not geo.points_equal(ray.origin, base))
        result = TrackingResult(point=point, tracking_lines=lines)

    logger.debug(
        "tracking: %d rays, %d qualifying, active=%s",
        count,
        len(qualifying),
        [line.type.value for line in result.tracking_lines],
    )
    return result


__all__ = [
    "ACQUISITION_REACH",
    "DUPLICATE_ANGLE_EPS",
    "ReferenceSegments",
    "apply_tracking",
    "candidate_rays",
    "make_tracking_line",
    "polar_ray",
    "project_onto_ray",
    "ray_offset",
]
