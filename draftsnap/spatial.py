"""Quad-tree over shape bounding boxes for broad-phase proximity queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .shapes import Shape, shape_bounds
from .tracking import ReferenceSegments
from .types import Bounds
from .validate import ShapeValidationError, validate_shape

logger = logging.getLogger(__name__)

DEFAULT_NODE_CAPACITY = 8
DEFAULT_MAX_DEPTH = 8

# Column layout of the bounds arrays.
_MIN_X, _MIN_Y, _MAX_X, _MAX_Y = range(4)


@dataclass
class QuadNode:
    """One quad-tree cell.

    ``items`` holds indices (into the tree's shape list) of boxes that are
    fully contained by this cell but by none of its children; boxes straddling
    a split line stay at the parent.
    """

    bounds: Bounds
    depth: int
    items: np.ndarray
    boxes: np.ndarray
    children: List["QuadNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children


def _quadrants(bounds: Bounds) -> List[Bounds]:
    cx, cy = bounds.center
    return [
        Bounds(bounds.min_x, bounds.min_y, cx, cy),
        Bounds(cx, bounds.min_y, bounds.max_x, cy),
        Bounds(bounds.min_x, cy, cx, bounds.max_y),
        Bounds(cx, cy, bounds.max_x, bounds.max_y),
    ]


def _contained_mask(boxes: np.ndarray, bounds: Bounds) -> np.ndarray:
    return (
        (boxes[:, _MIN_X] >= bounds.min_x)
        & (boxes[:, _MIN_Y] >= bounds.min_y)
        & (boxes[:, _MAX_X] <= bounds.max_x)
        & (boxes[:, _MAX_Y] <= bounds.max_y)
    )


def _intersect_mask(boxes: np.ndarray, query: Bounds) -> np.ndarray:
    return (
        (boxes[:, _MIN_X] <= query.max_x)
        & (boxes[:, _MAX_X] >= query.min_x)
        & (boxes[:, _MIN_Y] <= query.max_y)
        & (boxes[:, _MAX_Y] >= query.min_y)
    )


class QuadTree:
    """Immutable quad-tree; rebuild it whenever the shape set changes."""

    def __init__(
        self,
        shapes: Sequence[Shape],
        *,
        capacity: int = DEFAULT_NODE_CAPACITY,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if capacity < 1:
            raise ValueError("quad-tree node capacity must be at least 1")
        if max_depth < 0:
            raise ValueError("quad-tree max depth must be non-negative")
        self.capacity = capacity
        self.max_depth = max_depth

        indexed: List[Shape] = []
        rows: List[Tuple[float, float, float, float]] = []
        for shape in shapes:
            try:
                validate_shape(shape)
            except ShapeValidationError as exc:
                logger.debug("quad-tree: skipping malformed shape: %s", exc)
                continue
            bounds = shape_bounds(shape)
            if bounds is None:
                continue
            indexed.append(shape)
            rows.append((bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y))

        self._shapes: Tuple[Shape, ...] = tuple(indexed)
        self._by_id: Dict[str, Shape] = {shape.id: shape for shape in indexed}
        self._boxes = np.asarray(rows, dtype=float).reshape(-1, 4)
        self._node_count = 0
        self._max_seen_depth = 0
        self.root: Optional[QuadNode] = None
        self._references: Optional[ReferenceSegments] = None
        if indexed:
            root_bounds = Bounds(
                float(self._boxes[:, _MIN_X].min()),
                float(self._boxes[:, _MIN_Y].min()),
                float(self._boxes[:, _MAX_X].max()),
                float(self._boxes[:, _MAX_Y].max()),
            )
            if root_bounds.width <= 0.0 or root_bounds.height <= 0.0:
                root_bounds = root_bounds.expanded(0.5)
            self.root = self._build(root_bounds, np.arange(len(indexed), dtype=np.int64), 0)

    @classmethod
    def build_from_shapes(
        cls,
        shapes: Iterable[Shape],
        active_drawing_id: Optional[str] = None,
        **kwargs,
    ) -> "QuadTree":
        """Index the visible shapes of ``active_drawing_id`` (all drawings when ``None``)."""

        selected = [
            shape
            for shape in shapes
            if getattr(shape, "visible", True)
            and (active_drawing_id is None or getattr(shape, "drawing_id", None) == active_drawing_id)
        ]
        tree = cls(selected, **kwargs)
        logger.info(
            "Built quad-tree for drawing %r: %d shapes, %d nodes, depth %d",
            active_drawing_id,
            len(tree),
            tree.node_count,
            tree.depth,
        )
        return tree

    def _build(self, bounds: Bounds, items: np.ndarray, depth: int) -> QuadNode:
        self._node_count += 1
        self._max_seen_depth = max(self._max_seen_depth, depth)
        boxes = self._boxes[items]
        if len(items) <= self.capacity or depth >= self.max_depth:
            return QuadNode(bounds=bounds, depth=depth, items=items, boxes=boxes)

        remaining = np.ones(len(items), dtype=bool)
        children: List[QuadNode] = []
        for quadrant in _quadrants(bounds):
            mask = remaining & _contained_mask(boxes, quadrant)
            remaining &= ~mask
            child_items = items[mask]
            if child_items.size:
                children.append(self._build(quadrant, child_items, depth + 1))

        kept = items[remaining]
        return QuadNode(bounds=bounds, depth=depth, items=kept, boxes=self._boxes[kept], children=children)

    def __len__(self) -> int:
        return len(self._shapes)

    @property
    def node_count(self) -> int:
        return self._node_count

    @property
    def depth(self) -> int:
        return self._max_seen_depth

    @property
    def shapes(self) -> Tuple[Shape, ...]:
        return self._shapes

    @property
    def tracking_references(self) -> ReferenceSegments:
        """Tracking reference segments of the indexed shapes, packed on first use."""

        if self._references is None:
            self._references = ReferenceSegments.from_shapes(self._shapes)
        return self._references

    def get(self, shape_id: str) -> Optional[Shape]:
        return self._by_id.get(shape_id)

    def _query_indices(self, query: Bounds) -> np.ndarray:
        if self.root is None:
            return np.empty(0, dtype=np.int64)
        found: List[np.ndarray] = []
        stack = [self.root]
        while stack:
            node = stack.pop()
            if not node.bounds.intersects(query):
                continue
            if node.items.size:
                found.append(node.items[_intersect_mask(node.boxes, query)])
            stack.extend(node.children)
        if not found:
            return np.empty(0, dtype=np.int64)
        # Insertion order doubles as z-order for pick tests.
        return np.sort(np.concatenate(found))

    def query_rect(self, query: Bounds) -> List[str]:
        """Ids of shapes whose bounding box touches ``query`` (broad phase)."""

        return [self._shapes[i].id for i in self._query_indices(query)]

    def query_point(self, point: Tuple[float, float], tolerance: float) -> List[str]:
        """Ids of shapes whose bounding box touches the square of half-width ``tolerance``."""

        return self.query_rect(Bounds.around(point, max(tolerance, 0.0)))

    def query_shapes(self, point: Tuple[float, float], tolerance: float) -> List[Shape]:
        return [self._shapes[i] for i in self._query_indices(Bounds.around(point, max(tolerance, 0.0)))]


class SpatialIndexCache:
    """Memoizes one ``QuadTree`` on the identity of the shape collection."""

    def __init__(self, **tree_kwargs) -> None:
        self._tree_kwargs = tree_kwargs
        self._shapes_ref: Optional[object] = None
        self._drawing_id: Optional[str] = None
        self._tree: Optional[QuadTree] = None
        self.rebuilds = 0

    def get(self, shapes: Sequence[Shape], active_drawing_id: Optional[str]) -> QuadTree:
        if self._tree is None or shapes is not self._shapes_ref or active_drawing_id != self._drawing_id:
            self._tree = QuadTree.build_from_shapes(shapes, active_drawing_id, **self._tree_kwargs)
            self._shapes_ref = shapes
            self._drawing_id = active_drawing_id
            self.rebuilds += 1
        return self._tree

    def invalidate(self) -> None:
        self._tree = None
        self._shapes_ref = None


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_NODE_CAPACITY",
    "QuadNode",
    "QuadTree",
    "SpatialIndexCache",
]
