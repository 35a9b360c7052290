import math
import numbers
from typing import Iterable, Iterator, List

from .geometry import is_finite_point
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
)


class ShapeValidationError(ValueError):
    pass


def _finite(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def _require_point(shape, name: str, value: object) -> None:
    if not is_finite_point(value):
        raise ShapeValidationError(f'shape {shape.id!r} ({shape.kind}) has invalid {name}: {value!r}')


def _require_number(shape, name: str, value: object) -> None:
    if not _finite(value):
        raise ShapeValidationError(f'shape {shape.id!r} ({shape.kind}) has invalid {name}: {value!r}')


def validate_shape(shape: object) -> None:
    """Raise ``ShapeValidationError`` when geometry fields are missing or non-finite."""
    if isinstance(shape, (LineShape, BeamShape)):
        _require_point(shape, 'start', shape.start)
        _require_point(shape, 'end', shape.end)
        if isinstance(shape, BeamShape):
            _require_number(shape, 'flange_width', shape.flange_width)
    elif isinstance(shape, RectangleShape):
        _require_point(shape, 'top_left', shape.top_left)
        for name in ('width', 'height', 'rotation'):
            _require_number(shape, name, getattr(shape, name))
    elif isinstance(shape, (CircleShape, ArcShape)):
        _require_point(shape, 'center', shape.center)
        _require_number(shape, 'radius', shape.radius)
        if shape.radius < 0:
            raise ShapeValidationError(f'shape {shape.id!r} ({shape.kind}) has negative radius')
        if isinstance(shape, ArcShape):
            _require_number(shape, 'start_angle', shape.start_angle)
            _require_number(shape, 'end_angle', shape.end_angle)
    elif isinstance(shape, EllipseShape):
        _require_point(shape, 'center', shape.center)
        for name in ('radius_x', 'radius_y', 'rotation'):
            _require_number(shape, name, getattr(shape, name))
        if shape.radius_x < 0 or shape.radius_y < 0:
            raise ShapeValidationError(f'shape {shape.id!r} (ellipse) has negative radius')
    elif isinstance(shape, PolylineShape):
        if not isinstance(shape.points, (list, tuple)):
            raise ShapeValidationError(f'shape {shape.id!r} (polyline) has invalid points: {shape.points!r}')
        for idx, pt in enumerate(shape.points):
            _require_point(shape, f'points[{idx}]', pt)
    elif isinstance(shape, TextShape):
        if not isinstance(shape.text, str):
            raise ShapeValidationError(f'shape {shape.id!r} (text) has invalid text: {shape.text!r}')
        _require_point(shape, 'position', shape.position)
        _require_number(shape, 'font_size', shape.font_size)
        _require_number(shape, 'line_height', shape.line_height)
    elif isinstance(shape, PointShape):
        _require_point(shape, 'position', shape.position)
    else:
        raise ShapeValidationError(f'unsupported shape type {type(shape).__name__}')


def is_degenerate(shape: Shape) -> bool:
    """Zero-length or zero-radius geometry that offers no type-specific snaps."""
    if isinstance(shape, (LineShape, BeamShape)):
        return shape.start[0] == shape.end[0] and shape.start[1] == shape.end[1]
    if isinstance(shape, RectangleShape):
        return shape.width == 0 and shape.height == 0
    if isinstance(shape, (CircleShape, ArcShape)):
        return shape.radius == 0
    if isinstance(shape, EllipseShape):
        return shape.radius_x == 0 or shape.radius_y == 0
    if isinstance(shape, PolylineShape):
        return len(shape.points) < 2
    if isinstance(shape, TextShape):
        return not shape.text
    return False


def iter_valid_shapes(shapes: Iterable[object], log=None) -> Iterator[Shape]:
    """Yield shapes that pass ``validate_shape``; report the others to ``log``."""
    for shape in shapes:
        try:
            validate_shape(shape)
        except ShapeValidationError as exc:
            if log is not None:
                log.debug('skipping malformed shape: %s', exc)
            continue
        yield shape


def validate_shapes(shapes: Iterable[object]) -> List[ShapeValidationError]:
    errors: List[ShapeValidationError] = []
    for shape in shapes:
        try:
            validate_shape(shape)
        except ShapeValidationError as exc:
            errors.append(exc)
    return errors
