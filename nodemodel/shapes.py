"""
Shape variants - per-shape behaviour plugged into a node.

A node holds exactly one ``NodeShape``, selected from the registry by the
node's ``type`` at construction. The shape supplies the behaviour that differs
between shape kinds:
- default anchors when the node has no explicit offsets
- the post-mutation hook deriving geometry from properties
- the theme section used for styling
- hit testing
- the source/target connection rule chains
"""

from typing import TYPE_CHECKING, Any, Optional

from .config import get_settings
from .models import Anchor, ConnectRule, Point
from .transform import rotate_point

if TYPE_CHECKING:
    from .node import Node


def _number(value: Any) -> Optional[float]:
    """Return ``value`` as a float if it is a usable number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class NodeShape:
    """Base shape: rectangular hit area, no default anchors, no derived geometry."""

    name = "base"
    theme_key: Optional[str] = None

    def default_anchors(self, node: "Node") -> list[Anchor]:
        return []

    def set_attributes(self, node: "Node") -> None:
        """Called after every property change."""

    def create_id(self, node: "Node") -> Optional[str]:
        """Shape-specific id generation; ``None`` defers to the graph."""
        return None

    def connected_source_rules(self, node: "Node") -> list[ConnectRule]:
        return node.source_rules

    def connected_target_rules(self, node: "Node") -> list[ConnectRule]:
        return node.target_rules

    def resize_properties(self, node: "Node", width: float, height: float) -> dict[str, Any]:
        """Properties recording a new size, written after a resize."""
        return {"width": width, "height": height}

    def contains(self, node: "Node", point: Point) -> bool:
        """Whether ``point`` (canvas coordinates) falls inside the shape."""
        dx, dy = self._local_offset(node, point)
        return abs(dx) <= node.width / 2 and abs(dy) <= node.height / 2

    @staticmethod
    def _local_offset(node: "Node", point: Point) -> tuple[float, float]:
        """Offset of ``point`` from the center in the node's unrotated frame."""
        center = Point(x=node.x, y=node.y)
        local = rotate_point(point, center, -node.rotate)
        return local.x - node.x, local.y - node.y

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class RectShape(NodeShape):
    """Rectangle with anchors at the four edge midpoints."""

    name = "rect"
    theme_key = "rect"

    def default_anchors(self, node: "Node") -> list[Anchor]:
        x, y = node.x, node.y
        half_w, half_h = node.width / 2, node.height / 2
        return [
            Anchor(id=f"{node.id}_0", x=x, y=y - half_h),
            Anchor(id=f"{node.id}_1", x=x + half_w, y=y),
            Anchor(id=f"{node.id}_2", x=x, y=y + half_h),
            Anchor(id=f"{node.id}_3", x=x - half_w, y=y),
        ]

    def set_attributes(self, node: "Node") -> None:
        width = _number(node.properties.get("width"))
        height = _number(node.properties.get("height"))
        if width is not None:
            node.width = width
        if height is not None:
            node.height = height


class CircleShape(NodeShape):
    """Circle of radius ``properties['r']``; size is always the diameter."""

    name = "circle"
    theme_key = "circle"

    def radius(self, node: "Node") -> float:
        r = _number(node.properties.get("r"))
        return r if r is not None else get_settings().circle_radius

    def default_anchors(self, node: "Node") -> list[Anchor]:
        x, y, r = node.x, node.y, self.radius(node)
        return [
            Anchor(id=f"{node.id}_0", x=x, y=y - r),
            Anchor(id=f"{node.id}_1", x=x + r, y=y),
            Anchor(id=f"{node.id}_2", x=x, y=y + r),
            Anchor(id=f"{node.id}_3", x=x - r, y=y),
        ]

    def set_attributes(self, node: "Node") -> None:
        r = self.radius(node)
        node.width = r * 2
        node.height = r * 2

    def resize_properties(self, node: "Node", width: float, height: float) -> dict[str, Any]:
        return {"r": min(width, height) / 2}

    def contains(self, node: "Node", point: Point) -> bool:
        dx, dy = self._local_offset(node, point)
        return dx * dx + dy * dy <= self.radius(node) ** 2


class EllipseShape(NodeShape):
    """Ellipse with radii ``rx``/``ry``; anchors at the four cardinal points."""

    name = "ellipse"
    theme_key = "ellipse"

    def radii(self, node: "Node") -> tuple[float, float]:
        rx = _number(node.properties.get("rx"))
        ry = _number(node.properties.get("ry"))
        return (
            rx if rx is not None else node.width / 2,
            ry if ry is not None else node.height / 2,
        )

    def default_anchors(self, node: "Node") -> list[Anchor]:
        x, y = node.x, node.y
        rx, ry = self.radii(node)
        return [
            Anchor(id=f"{node.id}_0", x=x, y=y - ry),
            Anchor(id=f"{node.id}_1", x=x + rx, y=y),
            Anchor(id=f"{node.id}_2", x=x, y=y + ry),
            Anchor(id=f"{node.id}_3", x=x - rx, y=y),
        ]

    def set_attributes(self, node: "Node") -> None:
        rx, ry = self.radii(node)
        node.width = rx * 2
        node.height = ry * 2

    def resize_properties(self, node: "Node", width: float, height: float) -> dict[str, Any]:
        return {"rx": width / 2, "ry": height / 2}

    def contains(self, node: "Node", point: Point) -> bool:
        rx, ry = self.radii(node)
        if rx == 0 or ry == 0:
            return False
        dx, dy = self._local_offset(node, point)
        return (dx / rx) ** 2 + (dy / ry) ** 2 <= 1


class DiamondShape(EllipseShape):
    """Diamond whose vertices sit where the ellipse's cardinal points would."""

    name = "diamond"
    theme_key = "diamond"

    def contains(self, node: "Node", point: Point) -> bool:
        rx, ry = self.radii(node)
        if rx == 0 or ry == 0:
            return False
        dx, dy = self._local_offset(node, point)
        return abs(dx) / rx + abs(dy) / ry <= 1


class PolygonShape(NodeShape):
    """
    Polygon from ``properties['points']``, a list of ``[x, y]`` pairs in the
    polygon's own box; the node center is the middle of that box.
    """

    name = "polygon"
    theme_key = "polygon"

    def points(self, node: "Node") -> list[tuple[float, float]]:
        points = []
        for item in node.properties.get("points") or []:
            if isinstance(item, dict):
                px, py = _number(item.get("x")), _number(item.get("y"))
            elif isinstance(item, (list, tuple)) and len(item) >= 2:
                px, py = _number(item[0]), _number(item[1])
            else:
                continue
            if px is not None and py is not None:
                points.append((px, py))
        return points

    def _box(self, points: list[tuple[float, float]]) -> tuple[float, float, float, float]:
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return min(xs), min(ys), max(xs), max(ys)

    def _absolute(self, node: "Node") -> list[tuple[float, float]]:
        points = self.points(node)
        if not points:
            return []
        min_x, min_y, max_x, max_y = self._box(points)
        cx, cy = (min_x + max_x) / 2, (min_y + max_y) / 2
        return [(node.x + px - cx, node.y + py - cy) for px, py in points]

    def default_anchors(self, node: "Node") -> list[Anchor]:
        return [
            Anchor(id=f"{node.id}_{index}", x=px, y=py)
            for index, (px, py) in enumerate(self._absolute(node))
        ]

    def set_attributes(self, node: "Node") -> None:
        points = self.points(node)
        if not points:
            return
        min_x, min_y, max_x, max_y = self._box(points)
        node.width = max_x - min_x
        node.height = max_y - min_y

    def resize_properties(self, node: "Node", width: float, height: float) -> dict[str, Any]:
        points = self.points(node)
        if not points:
            return super().resize_properties(node, width, height)
        min_x, min_y, max_x, max_y = self._box(points)
        scale_x = width / (max_x - min_x) if max_x > min_x else 1
        scale_y = height / (max_y - min_y) if max_y > min_y else 1
        return {"points": [[(px - min_x) * scale_x, (py - min_y) * scale_y] for px, py in points]}

    def contains(self, node: "Node", point: Point) -> bool:
        polygon = self._absolute(node)
        if len(polygon) < 3:
            return False
        dx, dy = self._local_offset(node, point)
        px, py = node.x + dx, node.y + dy
        # Ray casting
        inside = False
        j = len(polygon) - 1
        for i, (xi, yi) in enumerate(polygon):
            xj, yj = polygon[j]
            if (yi > py) != (yj > py) and px < (xj - xi) * (py - yi) / (yj - yi) + xi:
                inside = not inside
            j = i
        return inside


class TextShape(NodeShape):
    """A free-standing text node: no anchors, so edges cannot attach."""

    name = "text"
    theme_key = "text"


_REGISTRY: dict[str, NodeShape] = {
    shape.name: shape
    for shape in (NodeShape(), RectShape(), CircleShape(), EllipseShape(),
                  DiamondShape(), PolygonShape(), TextShape())
}


def register_shape(shape: NodeShape, name: Optional[str] = None) -> None:
    """Register a shape variant under ``name`` (defaults to ``shape.name``)."""
    _REGISTRY[name or shape.name] = shape


def get_shape(node_type: str) -> NodeShape:
    """Shape for a node type; unknown types get the base shape."""
    return _REGISTRY.get(node_type, _REGISTRY["base"])
