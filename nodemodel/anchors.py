"""
Anchor resolution - derive a node's connection points.

Anchors come either from an explicit offset list stored on the node or from
the node's shape variant, and are always rotated to the node's current
rotation. They are recomputed on every read and never cached.
"""

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from .models import Anchor, ClosestAnchor, Point
from .transform import distance, rotate_points

if TYPE_CHECKING:
    from .node import Node

logger = logging.getLogger(__name__)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def anchors_from_offsets(node_id: str, x: float, y: float, offsets: list[Any]) -> list[Anchor]:
    """
    Convert offsets relative to the node center into absolute anchors.

    Each entry is either a legacy ``(dx, dy)`` pair or a record with ``x``/``y``
    and an optional ``id``. Missing ids become ``{node_id}_{index}``.
    Malformed entries are skipped with a warning.
    """
    anchors: list[Anchor] = []
    for index, offset in enumerate(offsets):
        default_id = f"{node_id}_{index}"
        if isinstance(offset, (list, tuple)):
            # Historical data format
            if len(offset) < 2 or _number(offset[0]) is None or _number(offset[1]) is None:
                logger.warning("Node %s: skipping malformed anchor offset %r", node_id, offset)
                continue
            anchors.append(Anchor(id=default_id, x=x + offset[0], y=y + offset[1]))
            continue
        if isinstance(offset, (Anchor, Point)):
            record = offset.model_dump()
        elif isinstance(offset, Mapping):
            record = dict(offset)
        else:
            logger.warning("Node %s: skipping unsupported anchor offset %r", node_id, offset)
            continue
        dx, dy = _number(record.get("x", 0)), _number(record.get("y", 0))
        if dx is None or dy is None:
            logger.warning("Node %s: skipping anchor offset with non-numeric position %r", node_id, offset)
            continue
        record["x"] = x + dx
        record["y"] = y + dy
        record["id"] = str(record.get("id") or default_id)
        anchors.append(Anchor(**record))
    return anchors


def rotate_anchors(anchors: list[Anchor], cx: float, cy: float, angle: float) -> list[Anchor]:
    """Rotate every anchor about ``(cx, cy)`` in place and return the list."""
    if not anchors:
        return anchors
    rotated = rotate_points([(anchor.x, anchor.y) for anchor in anchors], cx, cy, angle)
    for anchor, (px, py) in zip(anchors, rotated):
        anchor.x, anchor.y = float(px), float(py)
    return anchors


def resolve_anchors(node: "Node") -> list[Anchor]:
    """All anchors of ``node`` in absolute, rotated coordinates."""
    if node.anchors_offset:
        anchors = anchors_from_offsets(node.id, node.x, node.y, node.anchors_offset)
    else:
        anchors = node.shape.default_anchors(node)
    return rotate_anchors(anchors, node.x, node.y, node.rotate)


def find_anchor_by_id(anchors: list[Anchor], anchor_id: Optional[str]) -> Optional[Anchor]:
    """Linear search by id; ``None`` id never matches."""
    if anchor_id is None:
        return None
    for anchor in anchors:
        if anchor.id == anchor_id:
            return anchor
    return None


def find_closest_anchor(point: Point, anchors: list[Anchor]) -> Optional[ClosestAnchor]:
    """The anchor nearest to ``point`` (first one wins on ties)."""
    closest: Optional[ClosestAnchor] = None
    min_distance = float("inf")
    for index, anchor in enumerate(anchors):
        d = distance(point.x, point.y, anchor.x, anchor.y)
        if d < min_distance:
            min_distance = d
            closest = ClosestAnchor(index=index, anchor=anchor)
    return closest
