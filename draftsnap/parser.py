"""Typed coordinate entry: absolute, relative, polar and direct distance."""

import logging
import math
from typing import List, Optional, Sequence, Tuple

from . import geometry as geo
from .lexer import Token, tokenize_coordinate
from .types import CoordinateInput, Point

logger = logging.getLogger(__name__)


class Cursor:
    def __init__(self, tokens: List[Token]):
        self.toks = tokens
        self.i = 0

    def peek(self):
        return self.toks[self.i] if self.i < len(self.toks) else None

    def match(self, *types: str):
        if self.i < len(self.toks) and self.toks[self.i][0] in types:
            t = self.toks[self.i]
            self.i += 1
            return t
        return None

    def expect(self, *types: str):
        t = self.peek()
        if t and t[0] in types:
            self.i += 1
            return t
        want = '|'.join(types)
        if t:
            raise SyntaxError(f'[col {t[2]}] expected {want}, got {t[0]}')
        raise SyntaxError(f'Unexpected end of input: expected {want}')

    def expect_end(self):
        t = self.peek()
        if t:
            raise SyntaxError(f'[col {t[2]}] unexpected trailing {t[0]}')


def parse_number(cur: Cursor) -> float:
    t = cur.expect('NUMBER')
    value = float(t[1])
    if not math.isfinite(value):
        raise SyntaxError(f'[col {t[2]}] number out of range: {t[1]}')
    return value


def parse_coordinate(text: str) -> Tuple[str, Tuple[float, ...]]:
    """Parse ``text`` into ``(form, numbers)``; raises ``SyntaxError``.

    ``form`` is one of ``absolute``, ``relative``, ``polar`` or ``distance``.
    """
    cur = Cursor(tokenize_coordinate(text))
    if cur.peek() is None:
        raise SyntaxError('empty coordinate input')
    relative = cur.match('AT') is not None
    first = parse_number(cur)
    if cur.match('COMMA'):
        second = parse_number(cur)
        cur.expect_end()
        return ('relative' if relative else 'absolute'), (first, second)
    if relative:
        cur.expect('ANGLE')
        angle = parse_number(cur)
        cur.expect_end()
        return 'polar', (first, angle)
    cur.expect_end()
    return 'distance', (first,)


def parse_coordinate_input(text: str, reference_point: Optional[Sequence[float]]) -> Optional[CoordinateInput]:
    """Turn typed text into a world point relative to ``reference_point``.

    Returns ``None`` for text that is not a coordinate (the caller treats it as
    a command) and for relative/polar input without a reference point.
    """
    if not isinstance(text, str):
        return None
    try:
        form, values = parse_coordinate(text)
    except SyntaxError as exc:
        logger.debug('not a coordinate %r: %s', text, exc)
        return None

    if form == 'absolute':
        return CoordinateInput(Point(*values))
    if form == 'distance':
        return CoordinateInput(Point(values[0], 0.0), is_direct_distance=True)

    if reference_point is None or not geo.is_finite_point(reference_point):
        return None
    base = geo.as_point(reference_point)
    if form == 'relative':
        return CoordinateInput(geo.add(base, values))
    distance, angle_deg = values
    return CoordinateInput(geo.from_polar(distance, math.radians(angle_deg), base))


def resolve_direct_distance(
    base: Sequence[float],
    distance: float,
    tracking_angle: Optional[float],
    mouse_point: Optional[Sequence[float]] = None,
) -> Point:
    """Place a point ``distance`` away from ``base``.

    The direction is the active tracking angle or, when no ray is active, the
    bearing from ``base`` towards the mouse.
    """
    if tracking_angle is not None:
        angle = tracking_angle
    elif mouse_point is not None:
        angle = geo.angle_between_points(base, mouse_point)
    else:
        angle = 0.0
    return geo.from_polar(distance, angle, base)


__all__ = [
    'Cursor',
    'parse_coordinate',
    'parse_coordinate_input',
    'resolve_direct_distance',
]
