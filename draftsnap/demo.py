from . import (
    CircleShape,
    LineShape,
    PointResolver,
    RectangleShape,
    SnapSettings,
    SnapType,
    ViewportSettings,
    parse_coordinate_input,
    resolve_direct_distance,
    snap_type_label,
)

SCENE = [
    LineShape(id="wall-a", start=(0.0, 0.0), end=(200.0, 0.0)),
    LineShape(id="wall-b", start=(200.0, 0.0), end=(200.0, 120.0)),
    RectangleShape(id="door", top_left=(60.0, -5.0), width=40.0, height=10.0),
    CircleShape(id="column", center=(120.0, 80.0), radius=15.0),
]

CURSORS = [
    ((3.0, 2.0), None),
    ((101.0, 1.5), None),
    ((121.0, 79.0), None),
    ((150.0, 4.0), (0.0, 0.0)),
    ((260.0, 3.0), (200.0, 120.0)),
]


def run():
    settings = SnapSettings(
        active_snaps={SnapType.ENDPOINT, SnapType.MIDPOINT, SnapType.CENTER, SnapType.INTERSECTION, SnapType.GRID},
        snap_tolerance=8.0,
    )
    resolver = PointResolver(SCENE, settings=settings, viewport=ViewportSettings(zoom=1.0))

    for cursor, base in CURSORS:
        result = resolver.resolve_point(cursor, base_point=base)
        snap = f"{snap_type_label(result.snap_info.type)} on {result.snap_info.source_shape_id}" if result.snap_info else "-"
        rays = ", ".join(line.type.value for line in result.tracking_lines) or "-"
        print(f"cursor={cursor} base={base} -> {result.point} snap={snap} tracking={rays}")

    for text in ("25,40", "@10,-5", "@100<90", "50", "LINE"):
        parsed = parse_coordinate_input(text, (100.0, 100.0))
        if parsed is None:
            print(f"{text!r}: not a coordinate")
        elif parsed.is_direct_distance:
            print(f"{text!r}: direct distance -> {resolve_direct_distance((100.0, 100.0), parsed.point.x, 0.0)}")
        else:
            print(f"{text!r}: {parsed.point}")


if __name__ == "__main__":
    run()
