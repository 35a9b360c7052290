"""Per-event point resolution: tracking, then object snap, then in-progress points."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from . import geometry as geo
from .config import SnapSettings, ViewportSettings, get_default_settings
from .logging_utils import apply_debug_logging
from .shapes import Shape
from .snap import find_drawing_point_snap, find_nearest_snap_point
from .spatial import QuadTree, SpatialIndexCache
from .tracking import apply_tracking
from .types import Point, ResolvedPoint, SnapPoint

logger = logging.getLogger(__name__)


class PointResolver:
    """Resolves raw cursor positions against one drawing's shapes.

    The quad-tree is rebuilt only when ``shapes`` is replaced by a different
    collection object or the active drawing changes; mutate nothing in place
    during an interaction.
    """

    def __init__(
        self,
        shapes: Sequence[Shape] = (),
        active_drawing_id: Optional[str] = None,
        settings: Optional[SnapSettings] = None,
        viewport: Optional[ViewportSettings] = None,
    ) -> None:
        self.shapes = shapes
        self.active_drawing_id = active_drawing_id
        self.settings = settings if settings is not None else get_default_settings()
        self.viewport = viewport if viewport is not None else ViewportSettings()
        self._index_cache = SpatialIndexCache()

    @property
    def index(self) -> QuadTree:
        return self._index_cache.get(self.shapes, self.active_drawing_id)

    @property
    def index_rebuilds(self) -> int:
        return self._index_cache.rebuilds

    def update_shapes(self, shapes: Sequence[Shape], active_drawing_id: Optional[str] = None) -> None:
        self.shapes = shapes
        if active_drawing_id is not None:
            self.active_drawing_id = active_drawing_id

    def resolve_point(
        self,
        cursor: Sequence[float],
        base_point: Optional[Sequence[float]] = None,
        source_snap_angle: Optional[float] = None,
        drawing_points: Sequence[Sequence[float]] = (),
    ) -> ResolvedPoint:
        if not geo.is_finite_point(cursor):
            logger.debug("resolve: non-finite cursor %r passed through", cursor)
            return ResolvedPoint(point=Point(float(cursor[0]), float(cursor[1])))
        raw = geo.as_point(cursor)
        settings = self.settings
        tolerance = self.viewport.world_tolerance(settings.snap_tolerance)
        index = self.index

        tracking = None
        if base_point is not None and settings.tracking_enabled:
            tracking = apply_tracking(
                raw,
                base_point,
                index.tracking_references,
                settings.tracking_settings(tolerance, source_snap_angle),
            )
        probe = tracking.point if tracking is not None else raw

        snap: Optional[SnapPoint] = None
        if settings.snap_enabled:
            enabled = settings.effective_snaps()
            grid_size = self.viewport.adjusted_grid_size(settings.grid_size)
            snap = find_nearest_snap_point(
                probe, index.shapes, enabled, tolerance, grid_size, base_point=base_point, index=index
            )
            drawing_snap = find_drawing_point_snap(probe, drawing_points, enabled, tolerance)
            if drawing_snap is not None and (
                snap is None or geo.distance(drawing_snap.point, probe) < geo.distance(snap.point, probe)
            ):
                snap = drawing_snap

        lines = list(tracking.tracking_lines) if tracking is not None else []
        if snap is not None:
            point = snap.point
        else:
            point = probe
        return ResolvedPoint(
            point=point,
            snap_info=snap,
            tracking_lines=lines,
            direct_distance_angle=lines[0].angle if lines else None,
        )


def resolve_point(
    cursor: Sequence[float],
    shapes: Sequence[Shape],
    settings: Optional[SnapSettings] = None,
    viewport: Optional[ViewportSettings] = None,
    base_point: Optional[Sequence[float]] = None,
    source_snap_angle: Optional[float] = None,
    drawing_points: Sequence[Sequence[float]] = (),
    active_drawing_id: Optional[str] = None,
) -> ResolvedPoint:
    """One-shot resolution; builds a throwaway index over ``shapes``."""

    resolver = PointResolver(shapes, active_drawing_id, settings, viewport)
    return resolver.resolve_point(cursor, base_point, source_snap_angle, drawing_points)


apply_debug_logging(globals(), logger=logger)


__all__ = ["PointResolver", "resolve_point"]
