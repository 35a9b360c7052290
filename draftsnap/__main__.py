import argparse
import logging
import math
import sys
from typing import Optional, Sequence, Tuple

from draftsnap import parse_coordinate_input, resolve_direct_distance

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_point(value: Optional[str]) -> Optional[Tuple[float, float]]:
    if not value:
        return None
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected X,Y, got {value!r}")
    try:
        return float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected X,Y, got {value!r}") from exc


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Resolve typed drafting coordinates")
    parser.add_argument("inputs", nargs="+", help="Coordinate entries, e.g. 10,20 @5,0 @50<30 25")
    parser.add_argument("--base", type=_parse_point, default=None, help="Base point X,Y for relative input")
    parser.add_argument(
        "--angle",
        type=float,
        default=None,
        help="Active tracking angle in degrees for direct distance entry",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    base = args.base
    status = 0
    for text in args.inputs:
        parsed = parse_coordinate_input(text, base)
        if parsed is None:
            logger.warning("Not a coordinate: %r", text)
            status = 1
            continue
        point = parsed.point
        if parsed.is_direct_distance:
            if base is None:
                logger.warning("Direct distance %r needs a base point", text)
                status = 1
                continue
            angle = None if args.angle is None else math.radians(args.angle)
            point = resolve_direct_distance(base, point.x, angle)
        print(f"{text} -> {point.x:.6g},{point.y:.6g}")
        base = (point.x, point.y)
    return status


if __name__ == "__main__":
    sys.exit(main())
