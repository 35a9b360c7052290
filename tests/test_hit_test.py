import math

import pytest

from draftsnap.hit_test import find_shape_at_point, is_point_near_shape
from draftsnap.shapes import (
    ArcShape,
    BeamShape,
    CircleShape,
    EllipseShape,
    LineShape,
    PointShape,
    PolylineShape,
    RectangleShape,
    TextShape,
)
from draftsnap.spatial import QuadTree


@pytest.mark.parametrize(
    'shape, near, far',
    [
        (LineShape(id='l', start=(0, 0), end=(10, 0)), (5, 3), (5, 8)),
        (BeamShape(id='b', start=(0, 0), end=(10, 0), flange_width=4), (10, 2), (16, 0)),
        (RectangleShape(id='r', top_left=(0, 0), width=20, height=20), (20, 10), (10, 10)),
        (CircleShape(id='c', center=(0, 0), radius=10), (0, 13), (0, 0)),
        (PolylineShape(id='p', points=((0, 0), (10, 0), (10, 10))), (12, 5), (3, 7)),
        (EllipseShape(id='e', center=(0, 0), radius_x=20, radius_y=10), (20.5, 0), (0, 0)),
        (TextShape(id='t', position=(0, 0), text='HELLO', font_size=10), (12, 6), (40, 6)),
        (PointShape(id='pt', position=(3, 3)), (4, 4), (10, 10)),
    ],
)
def test_point_near_each_shape_kind(shape, near, far):
    assert is_point_near_shape(near, shape, 5.0)
    assert not is_point_near_shape(far, shape, 5.0)


def test_arc_uses_angular_slack():
    arc = ArcShape(id='a', center=(0, 0), radius=10, start_angle=0.0, end_angle=math.pi / 2)
    assert is_point_near_shape((0.0, 10.0), arc, 1.0)
    just_past = (10 * math.cos(-0.05), 10 * math.sin(-0.05))
    assert is_point_near_shape(just_past, arc, 1.0)
    assert not is_point_near_shape((-10.0, 0.0), arc, 1.0)


def test_degenerate_line_is_a_point():
    line = LineShape(id='z', start=(2, 2), end=(2, 2))
    assert is_point_near_shape((3, 2), line, 2.0)
    assert not is_point_near_shape((5, 2), line, 2.0)


def test_topmost_shape_wins():
    shapes = [
        LineShape(id='under', start=(0, 0), end=(10, 0)),
        LineShape(id='over', start=(0, 1), end=(10, 1)),
        CircleShape(id='elsewhere', center=(100, 100), radius=2),
    ]
    tree = QuadTree(shapes)
    assert find_shape_at_point((5, 0.5), tree, 2.0) == 'over'
    assert find_shape_at_point((50, 50), tree, 2.0) is None


def test_locked_shapes_can_be_excluded():
    shapes = [
        LineShape(id='under', start=(0, 0), end=(10, 0)),
        LineShape(id='over', locked=True, start=(0, 1), end=(10, 1)),
    ]
    tree = QuadTree(shapes)
    assert find_shape_at_point((5, 0.5), tree, 2.0) == 'over'
    assert find_shape_at_point((5, 0.5), tree, 2.0, include_locked=False) == 'under'
