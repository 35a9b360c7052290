"""Immutable snap, tracking and viewport configuration values."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Optional, Union

from .types import Point, SnapType

DEFAULT_ACTIVE_SNAPS: FrozenSet[SnapType] = frozenset(
    {SnapType.GRID, SnapType.ENDPOINT, SnapType.MIDPOINT, SnapType.CENTER, SnapType.INTERSECTION}
)

GRID_MIN_SCREEN_STEP = 10.0
GRID_MAX_SCREEN_STEP = 100.0
GRID_STEP_FACTOR = 5.0
ORTHO_ANGLE_INCREMENT = 90.0


def coerce_snap_types(values: Iterable[Union[str, SnapType]]) -> FrozenSet[SnapType]:
    """Convert snap type names to ``SnapType`` members, rejecting unknown names."""

    result = set()
    for value in values:
        try:
            result.add(SnapType(value))
        except ValueError as exc:
            raise ValueError(f"unknown snap type {value!r}") from exc
    return frozenset(result)


@dataclass(frozen=True)
class ViewportSettings:
    """Viewport transform: ``screen = world * zoom + offset``."""

    zoom: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.zoom) and self.zoom > 0.0):
            raise ValueError(f"viewport zoom must be positive, got {self.zoom!r}")

    def world_tolerance(self, pixels: float) -> float:
        return pixels / self.zoom

    def adjusted_grid_size(self, grid_size: float) -> float:
        """Grid step scaled by powers of 5 so it spans 10-100 px on screen."""

        if not (math.isfinite(grid_size) and grid_size > 0.0):
            raise ValueError(f"grid size must be positive, got {grid_size!r}")
        step = float(grid_size)
        while step * self.zoom < GRID_MIN_SCREEN_STEP:
            step *= GRID_STEP_FACTOR
        while step * self.zoom > GRID_MAX_SCREEN_STEP:
            step /= GRID_STEP_FACTOR
        return step

    def screen_to_world(self, screen_x: float, screen_y: float) -> Point:
        return Point((screen_x - self.offset_x) / self.zoom, (screen_y - self.offset_y) / self.zoom)

    def world_to_screen(self, world_x: float, world_y: float) -> Point:
        return Point(world_x * self.zoom + self.offset_x, world_y * self.zoom + self.offset_y)


@dataclass(frozen=True)
class TrackingSettings:
    """Alignment tracking configuration for a single resolution call.

    ``tracking_tolerance`` is in world units.  ``source_snap_angle`` carries the
    direction (radians) of the shape snapped to on a previous click.
    """

    enabled: bool = True
    polar_enabled: bool = True
    ortho_enabled: bool = False
    object_tracking_enabled: bool = True
    parallel_tracking_enabled: bool = False
    perpendicular_tracking_enabled: bool = False
    polar_angle_increment: float = 45.0
    tracking_tolerance: float = 10.0
    source_snap_angle: Optional[float] = None

    def __post_init__(self) -> None:
        if self.ortho_enabled:
            # Ortho is polar tracking pinned to 90 degrees.
            object.__setattr__(self, "polar_angle_increment", ORTHO_ANGLE_INCREMENT)
            object.__setattr__(self, "polar_enabled", True)
        if not (math.isfinite(self.polar_angle_increment) and self.polar_angle_increment > 0.0):
            raise ValueError(f"polar angle increment must be positive, got {self.polar_angle_increment!r}")
        if self.tracking_tolerance < 0.0:
            raise ValueError("tracking tolerance must be non-negative")


@dataclass(frozen=True)
class SnapSettings:
    """Global snap/tracking configuration as read from the editor per call.

    ``snap_tolerance`` is in screen pixels; it is converted to world units with
    the viewport zoom at resolution time.
    """

    snap_enabled: bool = True
    active_snaps: FrozenSet[SnapType] = field(default_factory=lambda: DEFAULT_ACTIVE_SNAPS)
    snap_tolerance: float = 10.0
    grid_size: float = 10.0
    grid_visible: bool = True
    tracking_enabled: bool = True
    polar_tracking_enabled: bool = True
    ortho_mode: bool = False
    object_tracking_enabled: bool = True
    parallel_tracking_enabled: bool = True
    polar_angle_increment: float = 45.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "active_snaps", coerce_snap_types(self.active_snaps))
        if not (math.isfinite(self.grid_size) and self.grid_size > 0.0):
            raise ValueError(f"grid size must be positive, got {self.grid_size!r}")
        if not (math.isfinite(self.snap_tolerance) and self.snap_tolerance >= 0.0):
            raise ValueError(f"snap tolerance must be non-negative, got {self.snap_tolerance!r}")

    def effective_snaps(self) -> FrozenSet[SnapType]:
        """Active snaps, with grid dropped while the grid is hidden."""

        if self.grid_visible:
            return self.active_snaps
        return self.active_snaps - {SnapType.GRID}

    def tracking_settings(
        self, world_tolerance: float, source_snap_angle: Optional[float] = None
    ) -> TrackingSettings:
        return TrackingSettings(
            enabled=self.tracking_enabled,
            polar_enabled=self.polar_tracking_enabled or self.ortho_mode,
            ortho_enabled=self.ortho_mode,
            object_tracking_enabled=self.object_tracking_enabled,
            parallel_tracking_enabled=self.parallel_tracking_enabled,
            perpendicular_tracking_enabled=SnapType.PERPENDICULAR in self.active_snaps,
            polar_angle_increment=ORTHO_ANGLE_INCREMENT if self.ortho_mode else self.polar_angle_increment,
            tracking_tolerance=world_tolerance,
            source_snap_angle=source_snap_angle,
        )

    def with_snaps(self, snaps: Iterable[Union[str, SnapType]]) -> "SnapSettings":
        return replace(self, active_snaps=coerce_snap_types(snaps))

    def toggled(self, snap_type: Union[str, SnapType]) -> "SnapSettings":
        member = SnapType(snap_type)
        if member in self.active_snaps:
            return replace(self, active_snaps=self.active_snaps - {member})
        return replace(self, active_snaps=self.active_snaps | {member})


_DEFAULT_SETTINGS = SnapSettings()


def get_default_settings() -> SnapSettings:
    return copy.deepcopy(_DEFAULT_SETTINGS)


def set_default_settings(settings: SnapSettings) -> None:
    global _DEFAULT_SETTINGS
    _DEFAULT_SETTINGS = copy.deepcopy(settings)


__all__ = [
    "DEFAULT_ACTIVE_SNAPS",
    "GRID_MAX_SCREEN_STEP",
    "GRID_MIN_SCREEN_STEP",
    "ORTHO_ANGLE_INCREMENT",
    "SnapSettings",
    "TrackingSettings",
    "ViewportSettings",
    "coerce_snap_types",
    "get_default_settings",
    "set_default_settings",
]
