from .types import (
    Bounds,
    CoordinateInput,
    IN_PROGRESS_SOURCE_ID,
    Point,
    ResolvedPoint,
    SNAP_PRIORITY,
    SnapPoint,
    SnapType,
    TrackingLine,
    TrackingResult,
    TrackingType,
)
from .geometry import Segment
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
    shape_bounds,
)
from .validate import ShapeValidationError, validate_shape, validate_shapes
from .config import (
    SnapSettings,
    TrackingSettings,
    ViewportSettings,
    get_default_settings,
    set_default_settings,
)
from .spatial import QuadTree, SpatialIndexCache
from .hit_test import find_shape_at_point, is_point_near_shape
from .snap import (
    find_drawing_point_snap,
    find_nearest_snap_point,
    get_intersection_points,
    get_shape_snap_points,
    snap_type_label,
    snap_type_symbol,
)
from .tracking import ReferenceSegments, apply_tracking
from .parser import parse_coordinate_input, resolve_direct_distance
from .resolve import PointResolver, resolve_point

__all__ = [
    'ArcShape',
    'BeamShape',
    'Bounds',
    'CircleShape',
    'CoordinateInput',
    'EllipseShape',
    'IN_PROGRESS_SOURCE_ID',
    'LineShape',
    'Point',
    'PointResolver',
    'PointShape',
    'PolylineShape',
    'QuadTree',
    'ReferenceSegments',
    'RectangleShape',
    'ResolvedPoint',
    'SNAP_PRIORITY',
    'Segment',
    'Shape',
    'ShapeValidationError',
    'SnapPoint',
    'SnapSettings',
    'SnapType',
    'SpatialIndexCache',
    'TextShape',
    'TrackingLine',
    'TrackingResult',
    'TrackingSettings',
    'TrackingType',
    'ViewportSettings',
    'apply_tracking',
    'find_drawing_point_snap',
    'find_nearest_snap_point',
    'find_shape_at_point',
    'get_default_settings',
    'get_intersection_points',
    'get_shape_snap_points',
    'is_point_near_shape',
    'parse_coordinate_input',
    'resolve_direct_distance',
    'resolve_point',
    'set_default_settings',
    'shape_bounds',
    'snap_type_label',
    'snap_type_symbol',
    'validate_shape',
    'validate_shapes',
]
