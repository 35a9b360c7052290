from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple


class Point(NamedTuple):
    x: float
    y: float

    def __repr__(self) -> str:  # pragma: no cover - trivial string formatting
        return f"Point({self.x:.6g}, {self.y:.6g})"


class SnapType(str, Enum):
    ENDPOINT = "endpoint"
    MIDPOINT = "midpoint"
    CENTER = "center"
    INTERSECTION = "intersection"
    PERPENDICULAR = "perpendicular"
    TANGENT = "tangent"
    NEAREST = "nearest"
    GRID = "grid"


# Highest priority first; consulted only when two candidates are equidistant.
SNAP_PRIORITY: Tuple[SnapType, ...] = (
    SnapType.ENDPOINT,
    SnapType.CENTER,
    SnapType.MIDPOINT,
    SnapType.INTERSECTION,
    SnapType.PERPENDICULAR,
    SnapType.TANGENT,
    SnapType.NEAREST,
    SnapType.GRID,
)

_SNAP_RANK = {snap_type: rank for rank, snap_type in enumerate(SNAP_PRIORITY)}


def snap_rank(snap_type: SnapType) -> int:
    """Return the tie-break rank of ``snap_type`` (lower wins)."""

    return _SNAP_RANK[snap_type]


class TrackingType(str, Enum):
    POLAR = "polar"
    PARALLEL = "parallel"
    PERPENDICULAR = "perpendicular"
    EXTENSION = "extension"


IN_PROGRESS_SOURCE_ID = "in-progress-drawing"


@dataclass(frozen=True)
class SnapPoint:
    """A detected object snap: where, what kind, and which shape produced it."""

    point: Point
    type: SnapType
    source_shape_id: Optional[str] = None


@dataclass(frozen=True)
class TrackingLine:
    """Construction ray starting at ``origin`` along the unit ``direction``."""

    origin: Point
    direction: Point
    angle: float
    type: TrackingType


@dataclass(frozen=True)
class TrackingResult:
    point: Point
    tracking_lines: List[TrackingLine] = field(default_factory=list)


@dataclass(frozen=True)
class ResolvedPoint:
    """Output of one pointer event passed through the resolution pipeline."""

    point: Point
    snap_info: Optional[SnapPoint] = None
    tracking_lines: List[TrackingLine] = field(default_factory=list)
    direct_distance_angle: Optional[float] = None


@dataclass(frozen=True)
class CoordinateInput:
    """Parsed coordinate text.

    For direct distance entry ``point.x`` holds the typed distance and
    ``point.y`` is zero; the caller supplies the direction.
    """

    point: Point
    is_direct_distance: bool = False


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return Point((self.min_x + self.max_x) * 0.5, (self.min_y + self.max_y) * 0.5)

    def intersects(self, other: "Bounds") -> bool:
        # Closed intervals so zero-area boxes still report contact.
        return (
            self.min_x <= other.max_x
            and other.min_x <= self.max_x
            and self.min_y <= other.max_y
            and other.min_y <= self.max_y
        )

    def contains(self, other: "Bounds") -> bool:
        return (
            self.min_x <= other.min_x
            and self.min_y <= other.min_y
            and other.max_x <= self.max_x
            and other.max_y <= self.max_y
        )

    def contains_point(self, point: Tuple[float, float]) -> bool:
        return self.min_x <= point[0] <= self.max_x and self.min_y <= point[1] <= self.max_y

    def expanded(self, margin: float) -> "Bounds":
        return Bounds(self.min_x - margin, self.min_y - margin, self.max_x + margin, self.max_y + margin)

    def union(self, other: "Bounds") -> "Bounds":
        return Bounds(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    @classmethod
    def around(cls, point: Tuple[float, float], half_width: float) -> "Bounds":
        return cls(point[0] - half_width, point[1] - half_width, point[0] + half_width, point[1] + half_width)


__all__ = [
    "Bounds",
    "CoordinateInput",
    "IN_PROGRESS_SOURCE_ID",
    "Point",
    "ResolvedPoint",
    "SNAP_PRIORITY",
    "SnapPoint",
    "SnapType",
    "TrackingLine",
    "TrackingResult",
    "TrackingType",
    "snap_rank",
]
