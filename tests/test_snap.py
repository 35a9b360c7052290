import logging
import math

import pytest

from draftsnap.shapes import ArcShape, CircleShape, LineShape, PolylineShape, RectangleShape
from draftsnap.snap import (
    find_drawing_point_snap,
    find_nearest_snap_point,
    get_intersection_points,
    get_shape_snap_points,
    snap_type_label,
    snap_type_symbol,
)
from draftsnap.spatial import QuadTree
from draftsnap.types import IN_PROGRESS_SOURCE_ID, Point, SnapType


ALL_SNAPS = list(SnapType)


def test_grid_snap_rounds_to_nearest_node():
    snap = find_nearest_snap_point((14, 14), [], ['grid'], tolerance=10.0, grid_size=10.0)
    assert snap is not None
    assert snap.type is SnapType.GRID
    assert snap.point == Point(10.0, 10.0)
    assert snap.source_shape_id is None


def test_grid_snap_respects_tolerance():
    assert find_nearest_snap_point((14, 14), [], ['grid'], tolerance=2.0, grid_size=10.0) is None


def test_endpoint_wins_tie_with_midpoint():
    # Endpoint of `a` and midpoint of `b` are both exactly 3 away from the cursor.
    shapes = [
        LineShape(id='a', start=(0, 0), end=(-20, 0)),
        LineShape(id='b', start=(6, 6), end=(6, -6)),
    ]
    cursor = (3.0, 0.0)
    snap = find_nearest_snap_point(cursor, shapes, ['endpoint', 'midpoint'], tolerance=5.0, grid_size=10.0)
    assert snap.type is SnapType.ENDPOINT
    assert snap.source_shape_id == 'a'


def test_tie_within_epsilon_uses_priority():
    shapes = [
        LineShape(id='a', start=(0, 0), end=(-20, 0)),
        LineShape(id='b', start=(6 + 1e-8, 6), end=(6 + 1e-8, -6)),
    ]
    snap = find_nearest_snap_point((3.0, 0.0), shapes, ['midpoint', 'endpoint'], tolerance=5.0, grid_size=10.0)
    assert snap.type is SnapType.ENDPOINT


def test_closest_candidate_beats_priority():
    shapes = [
        LineShape(id='a', start=(0, 0), end=(-20, 0)),
        LineShape(id='b', start=(4, 6), end=(4, -6)),
    ]
    snap = find_nearest_snap_point((3.0, 0.0), shapes, ['endpoint', 'midpoint'], tolerance=5.0, grid_size=10.0)
    assert snap.type is SnapType.MIDPOINT
    assert snap.point == Point(4.0, 0.0)


def test_center_and_intersection():
    shapes = [
        CircleShape(id='c', center=(50, 50), radius=20),
        LineShape(id='h', start=(0, 0), end=(100, 0)),
        LineShape(id='v', start=(30, -10), end=(30, 10)),
    ]
    center = find_nearest_snap_point((52, 49), shapes, ALL_SNAPS, tolerance=5.0, grid_size=1000.0)
    assert center.type is SnapType.CENTER
    assert center.source_shape_id == 'c'

    cross = find_nearest_snap_point((31, 1), shapes, ['intersection'], tolerance=5.0, grid_size=10.0)
    assert cross.type is SnapType.INTERSECTION
    assert cross.point == pytest.approx((30.0, 0.0))


def test_perpendicular_from_base_point():
    shapes = [LineShape(id='h', start=(0, 0), end=(100, 0))]
    snap = find_nearest_snap_point(
        (41, 2), shapes, ['perpendicular'], tolerance=5.0, grid_size=10.0, base_point=(40, 60)
    )
    assert snap.type is SnapType.PERPENDICULAR
    assert snap.point == pytest.approx((40.0, 0.0))


def test_tangent_requires_base_point():
    circle = CircleShape(id='c', center=(0, 0), radius=5)
    base = (10.0, 0.0)
    expected = (2.5, 5.0 * math.sin(math.acos(0.5)))
    assert find_nearest_snap_point(expected, [circle], ['tangent'], 3.0, 10.0) is None
    snap = find_nearest_snap_point((2.4, 4.5), [circle], ['tangent'], 3.0, 10.0, base_point=base)
    assert snap.type is SnapType.TANGENT
    assert snap.point == pytest.approx(expected)


def test_nearest_on_arc_and_circle():
    arc = ArcShape(id='arc', center=(0, 0), radius=10, start_angle=0.0, end_angle=math.pi / 2)
    snap = find_nearest_snap_point((7.5, 7.0), [arc], ['nearest'], tolerance=2.0, grid_size=10.0)
    assert snap.type is SnapType.NEAREST
    assert math.hypot(*snap.point) == pytest.approx(10.0)


def test_empty_inputs_return_none():
    assert find_nearest_snap_point((0, 0), [], ALL_SNAPS[:-1], 10.0, 10.0) is None
    assert find_nearest_snap_point((0, 0), [LineShape(id='a', start=(0, 0), end=(1, 0))], [], 10.0, 10.0) is None
    assert find_nearest_snap_point((math.nan, 0), [], ['grid'], 10.0, 10.0) is None


def test_degenerate_and_malformed_shapes_do_not_crash(caplog):
    shapes = [
        LineShape(id='zero', start=(5, 5), end=(5, 5)),
        CircleShape(id='dot', center=(5, 5), radius=0),
        LineShape(id='broken', start=(math.nan, 5), end=(6, 5)),
        PolylineShape(id='lonely', points=((5, 5),)),
    ]
    with caplog.at_level(logging.DEBUG, logger='draftsnap.snap'):
        snap = find_nearest_snap_point((5, 5), shapes, ['endpoint', 'midpoint', 'center'], 10.0, 10.0)
    assert snap is None
    assert 'broken' in caplog.text

    nearest = find_nearest_snap_point((5, 6), shapes, ['nearest'], 10.0, 10.0)
    assert nearest.point == Point(5.0, 5.0)


def test_index_and_linear_scan_agree():
    shapes = [
        RectangleShape(id=f'r{i}', top_left=(i * 30.0, (i % 4) * 25.0), width=20.0, height=10.0)
        for i in range(40)
    ]
    tree = QuadTree(shapes)
    for cursor in [(0.5, 0.2), (31, 26), (309, 60), (455, 2), (1000, 1000)]:
        linear = find_nearest_snap_point(cursor, shapes, ALL_SNAPS, 6.0, 5.0)
        indexed = find_nearest_snap_point(cursor, shapes, ALL_SNAPS, 6.0, 5.0, index=tree)
        assert linear == indexed


def test_rectangle_snap_points():
    rect = RectangleShape(id='r', top_left=(0, 0), width=10, height=4)
    points = get_shape_snap_points(rect, ['endpoint', 'midpoint', 'center'])
    by_type = {}
    for snap in points:
        by_type.setdefault(snap.type, []).append(snap.point)
    assert len(by_type[SnapType.ENDPOINT]) == 4
    assert Point(5.0, 0.0) in by_type[SnapType.MIDPOINT]
    assert by_type[SnapType.CENTER] == [Point(5.0, 2.0)]


def test_get_intersection_points_between_shapes():
    shapes = [
        LineShape(id='a', start=(0, 0), end=(10, 10)),
        LineShape(id='b', start=(0, 10), end=(10, 0)),
        LineShape(id='c', start=(20, 0), end=(30, 0)),
    ]
    hits = get_intersection_points(shapes)
    assert len(hits) == 1
    assert hits[0].point == pytest.approx((5.0, 5.0))
    assert hits[0].source_shape_id == 'a'


def test_labels_and_symbols_cover_every_type():
    for snap_type in SnapType:
        assert snap_type_label(snap_type)
        assert snap_type_symbol(snap_type.value)
    assert snap_type_label('endpoint') == 'Endpoint'
    with pytest.raises(ValueError):
        snap_type_label('bogus')


def test_unknown_snap_type_name_raises():
    with pytest.raises(ValueError):
        find_nearest_snap_point((0, 0), [], ['gird'], 10.0, 10.0)


def test_drawing_points_exclude_last_vertex_and_segment():
    points = [(0, 0), (10, 0), (10, 10)]
    snap = find_drawing_point_snap((10, 9), points, ['endpoint', 'midpoint'], 3.0)
    assert snap is None

    snap = find_drawing_point_snap((0.5, 0.5), points, ['endpoint', 'midpoint'], 3.0)
    assert snap.point == Point(0.0, 0.0)
    assert snap.source_shape_id == IN_PROGRESS_SOURCE_ID

    snap = find_drawing_point_snap((5, 1), points, ['endpoint', 'midpoint'], 3.0)
    assert snap.type is SnapType.MIDPOINT
    assert snap.point == Point(5.0, 0.0)

    assert find_drawing_point_snap((10, 5), points, ['endpoint', 'midpoint'], 3.0) is None


def test_drawing_points_need_two_vertices():
    assert find_drawing_point_snap((0, 0), [(0, 0)], ['endpoint'], 3.0) is None
