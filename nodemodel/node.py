"""
The node model - one shape on the canvas.

A ``Node`` holds position, size, rotation, free-form properties, style
overrides, explicit anchor offsets, UI state flags, rule chains and its text
labels. Behaviour that differs between shape kinds lives in the ``NodeShape``
variant picked from ``type`` at construction.

Derived state is recomputed eagerly: every setter touching ``x``, ``y`` or
``rotate`` rebuilds the transform descriptor before returning. Anchors are
resolved on every read.
"""

import copy
import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from .anchors import find_anchor_by_id, find_closest_anchor, resolve_anchors
from .config import get_settings
from .graph import GraphModel
from .labels import LabelField, NodeLabels
from .models import (
    Anchor,
    BoxBounds,
    ClosestAnchor,
    ConnectRule,
    ConnectRuleResult,
    ElementState,
    EventType,
    LabelConfig,
    MoveAllowance,
    NodeConfig,
    NodeData,
    OverlapMode,
    Point,
    ResizeInfo,
    TextLabel,
    generate_id,
)
from .rules import MoveRule, evaluate_connect_rules, evaluate_move_rules, resolve_move_axes
from .shapes import NodeShape, get_shape
from .transform import rotation_descriptor

logger = logging.getLogger(__name__)

# Attributes ``update_attributes`` may assign; anything else is rejected.
UPDATABLE_ATTRIBUTES = frozenset({
    "x", "y", "rotate", "width", "height",
    "min_width", "min_height", "max_width", "max_height",
    "anchors_offset", "z_index", "auto_to_front",
    "is_selected", "is_hovered", "is_show_anchor", "is_dragging",
    "draggable", "visible", "is_hittable", "enable_rotate", "enable_resize",
})


class Node:
    """
    A node in the diagram.

    Args:
        data: Construction input, a ``NodeConfig`` or an equivalent dict
        graph: The owning graph; a standalone ``GraphModel`` is created if omitted
        shape: Shape variant; looked up from ``data.type`` if omitted
    """

    BASE_TYPE = "node"

    def __init__(
        self,
        data: Union[NodeConfig, dict],
        graph: Optional[GraphModel] = None,
        shape: Optional[NodeShape] = None,
    ):
        config = data if isinstance(data, NodeConfig) else NodeConfig.model_validate(data)
        settings = get_settings()

        self.graph = graph if graph is not None else GraphModel()
        self.type = config.type
        self.shape = shape or get_shape(config.type)

        # Geometry
        self._x = config.x
        self._y = config.y
        self._rotate = config.rotate
        self._transform = ""
        self.width = config.width if config.width is not None else settings.default_width
        self.height = config.height if config.height is not None else settings.default_height
        self.min_width = settings.min_width
        self.min_height = settings.min_height
        self.max_width = settings.max_width
        self.max_height = settings.max_height
        self.anchors_offset: list[Any] = copy.deepcopy(config.anchors_offset)

        # Data
        self.properties: dict[str, Any] = copy.deepcopy(config.properties)
        self.style: dict[str, Any] = copy.deepcopy(config.style)

        # UI state
        self.is_selected = False
        self.is_hovered = False
        self.is_show_anchor = False
        self.is_dragging = False
        self.is_hittable = True
        self.draggable = True
        self.visible = True
        self.enable_rotate = True
        self.enable_resize = True
        self.auto_to_front = True
        self.z_index = config.z_index if config.z_index is not None else 1
        self.state = ElementState.DEFAULT
        self.addition_state_data: Optional[dict] = {}

        # Rules
        self.source_rules: list[ConnectRule] = []
        self.target_rules: list[ConnectRule] = []
        self.move_rules: list[MoveRule] = []
        self._source_rules_cache: Optional[list[ConnectRule]] = None
        self._target_rules_cache: Optional[list[ConnectRule]] = None

        # Custom shape id > graph-wide generator > uuid
        self.id = (
            config.id
            or self.shape.create_id(self)
            or self.graph.generate_id(self.type)
            or generate_id()
        )

        self._init_label_config()
        self._labels = NodeLabels(config.text, self.label_config, self.id, self._x, self._y)

        if self.graph.overlap_mode == OverlapMode.INCREASE:
            self.z_index = config.z_index or self.graph.next_z_index()

        self._update_transform()
        self.set_attributes()

    def __repr__(self) -> str:
        return f"<Node {self.id!r} type={self.type!r} at ({self._x}, {self._y})>"

    def _init_label_config(self) -> None:
        """Make sure ``properties['labelConfig']`` exists and is well-formed."""
        raw = self.properties.get("labelConfig")
        if raw is None:
            edit_config = self.graph.edit_config
            raw = {
                "multiple": edit_config.multiple_node_text,
                "verticalText": edit_config.node_text_vertical,
            }
        self.properties["labelConfig"] = LabelConfig.model_validate(raw).to_json_dict()

    # --- Geometry ---

    @property
    def x(self) -> float:
        return self._x

    @x.setter
    def x(self, value: float) -> None:
        self._x = value
        self._update_transform()

    @property
    def y(self) -> float:
        return self._y

    @y.setter
    def y(self, value: float) -> None:
        self._y = value
        self._update_transform()

    @property
    def rotate(self) -> float:
        """Rotation about the center, in radians."""
        return self._rotate

    @rotate.setter
    def rotate(self, value: float) -> None:
        self._rotate = value
        self._update_transform()

    @property
    def transform(self) -> str:
        """SVG transform rotating the shape about its center."""
        return self._transform

    def _update_transform(self) -> None:
        self._transform = rotation_descriptor(self._x, self._y, self._rotate)

    def get_bounds(self) -> BoxBounds:
        """
        Axis-aligned box of the unrotated shape.

        Rotation is not applied; callers needing rotated bounds combine this
        box with ``rotate`` themselves.
        """
        return BoxBounds(
            x1=self._x - self.width / 2,
            y1=self._y - self.height / 2,
            x2=self._x + self.width / 2,
            y2=self._y + self.height / 2,
        )

    def contains(self, point: Union[Point, dict]) -> bool:
        """Hit test against the shape outline."""
        return self.shape.contains(self, _as_point(point))

    # --- Anchors ---

    @property
    def anchors(self) -> list[Anchor]:
        """Current anchors in canvas coordinates, rotation applied."""
        return resolve_anchors(self)

    def get_default_anchor(self) -> list[Anchor]:
        """The shape's anchors before rotation, ignoring explicit offsets."""
        return self.shape.default_anchors(self)

    def find_anchor_by_id(self, anchor_id: Optional[str]) -> Optional[Anchor]:
        if anchor_id is None:
            return None
        return find_anchor_by_id(self.anchors, anchor_id)

    def get_target_anchor(self, position: Union[Point, dict]) -> Optional[ClosestAnchor]:
        """The anchor an edge dropped at ``position`` should attach to."""
        return find_closest_anchor(_as_point(position), self.anchors)

    # --- Connection Rules ---

    def is_allow_connected_as_source(
        self,
        target: "Node",
        source_anchor: Optional[Anchor] = None,
        target_anchor: Optional[Anchor] = None,
        edge_id: Optional[str] = None,
    ) -> ConnectRuleResult:
        """
        Whether an edge may start at this node and end at ``target``.

        The rule chain is resolved on the first call and reused afterwards;
        later changes to the rules do not affect this node.
        """
        if self._source_rules_cache is None:
            self._source_rules_cache = list(self.shape.connected_source_rules(self))
        return evaluate_connect_rules(
            self, self._source_rules_cache, self, target, source_anchor, target_anchor, edge_id,
        )

    def is_allow_connected_as_target(
        self,
        source: "Node",
        source_anchor: Optional[Anchor] = None,
        target_anchor: Optional[Anchor] = None,
        edge_id: Optional[str] = None,
    ) -> ConnectRuleResult:
        """Whether an edge from ``source`` may end at this node. Cached like the source chain."""
        if self._target_rules_cache is None:
            self._target_rules_cache = list(self.shape.connected_target_rules(self))
        return evaluate_connect_rules(
            self, self._target_rules_cache, source, self, source_anchor, target_anchor, edge_id,
        )

    # --- Movement ---

    def add_node_move_rule(self, rule: MoveRule) -> None:
        """Add a rule checked only for this node."""
        if rule not in self.move_rules:
            self.move_rules.append(rule)

    def is_allow_move_node(self, dx: float, dy: float) -> Union[bool, MoveAllowance]:
        """Evaluate node-local and graph-wide move rules for ``(dx, dy)``."""
        rules = [*self.move_rules, *self.graph.node_move_rules]
        return evaluate_move_rules(self, rules, dx, dy)

    def _allowed_axes(self, dx: float, dy: float, ignore_rules: bool) -> tuple[bool, bool]:
        if ignore_rules:
            return True, True
        return resolve_move_axes(self.is_allow_move_node(dx, dy))

    def move(self, dx: float, dy: float, ignore_rules: bool = False) -> bool:
        """
        Move by ``(dx, dy)``, each axis independently of the other.

        Returns:
            True if either axis moved
        """
        allow_x, allow_y = self._allowed_axes(dx, dy, ignore_rules)
        moved_x = dx if allow_x else 0
        moved_y = dy if allow_y else 0
        if allow_x:
            self.x = self._x + dx
        if allow_y:
            self.y = self._y + dy
        if allow_x or allow_y:
            self.on_node_moved(moved_x, moved_y)
        return allow_x or allow_y

    def get_move_distance(self, dx: float, dy: float, ignore_rules: bool = False) -> tuple[float, float]:
        """Move like ``move`` and report the distance actually applied per axis."""
        allow_x, allow_y = self._allowed_axes(dx, dy, ignore_rules)
        moved_x = dx if allow_x and dx else 0
        moved_y = dy if allow_y and dy else 0
        if moved_x:
            self.x = self._x + moved_x
        if moved_y:
            self.y = self._y + moved_y
        if moved_x or moved_y:
            self.on_node_moved(moved_x, moved_y)
        return moved_x, moved_y

    def move_to(self, x: float, y: float, ignore_rules: bool = False) -> bool:
        """
        Move the center to ``(x, y)``.

        Unlike ``move``, the rules judge the whole displacement at once: the
        move either happens on both axes or not at all.
        """
        dx = x - self._x
        dy = y - self._y
        if not ignore_rules and not self.is_allow_move_node(dx, dy):
            return False
        self.on_node_moved(dx, dy)
        self.x = x
        self.y = y
        return True

    def resize(self, resize_info: Union[ResizeInfo, dict]) -> NodeData:
        """
        Apply a handle drag.

        The node first moves by half the delta so the edge opposite the
        dragged handle stays put. ``min_*``/``max_*`` are not enforced here.
        """
        info = resize_info if isinstance(resize_info, ResizeInfo) else ResizeInfo.model_validate(resize_info)
        self.move(info.delta_x / 2, info.delta_y / 2)
        self.width = info.width
        self.height = info.height
        self.set_properties(self.shape.resize_properties(self, info.width, info.height))
        return self.get_data()

    # --- Labels ---

    @property
    def label_config(self) -> LabelConfig:
        try:
            return LabelConfig.model_validate(self.properties.get("labelConfig") or {})
        except ValidationError:
            logger.warning("Node %s has an invalid labelConfig; using defaults", self.id)
            return LabelConfig()

    @property
    def text(self) -> LabelField:
        """The label field: a list in multiple mode, one record otherwise."""
        return self._labels.text

    @property
    def labels(self) -> list[TextLabel]:
        return self._labels.to_list()

    def add_label(self, position: Union[Point, dict]) -> Optional[TextLabel]:
        """
        Start editing a new label at ``position``.

        In multiple mode a focused empty label is appended unless ``max`` is
        reached. In single mode the existing label is focused instead.
        """
        created = isinstance(self._labels.text, list)
        label = self._labels.add(self.label_config, position, self.id)
        if label is not None and created:
            self._emit_label(EventType.LABEL_ADD, label)
        return label

    def update_label(self, value: Union[str, dict], label_id: Optional[str] = None) -> Optional[TextLabel]:
        """Merge ``value`` into the label with ``label_id``; unknown ids are ignored."""
        label = self._labels.update(value, label_id)
        if label is not None:
            self._emit_label(EventType.LABEL_UPDATE, label)
        return label

    def delete_label(self, index: Optional[int] = None, label_id: Optional[str] = None) -> Optional[TextLabel]:
        """
        Remove the label at ``index`` or with ``label_id``.

        In single mode the label is kept and only its text is cleared.
        """
        label = self._labels.delete(index=index, label_id=label_id)
        if label is not None:
            self._emit_label(EventType.LABEL_DELETE, label)
        return label

    def on_node_moved(self, dx: float, dy: float) -> None:
        """Keep labels glued to the node after it moved by ``(dx, dy)``."""
        self._labels.shift(dx, dy)
        self.graph.emit(EventType.LABEL_MOVE, {"id": self.id, "deltaX": dx, "deltaY": dy})

    def _emit_label(self, event: EventType, label: TextLabel) -> None:
        self.graph.emit(event, {"id": self.id, "label": label.to_json_dict()})

    # --- Properties ---

    def set_attributes(self) -> None:
        """
        Post-mutation hook, run at construction and after every property change.

        Delegates to the shape (e.g. a circle deriving its size from ``r``) and
        keeps the label field in the shape its configuration asks for.
        """
        self.shape.set_attributes(self)
        self._labels.conform(self.label_config, self.id, self._x, self._y)

    def get_properties(self) -> dict[str, Any]:
        return copy.deepcopy(self.properties)

    def _update_properties(self, updates: dict[str, Any]) -> None:
        pre_properties = copy.deepcopy(self.properties)
        incoming = copy.deepcopy(updates)
        next_properties = {**copy.deepcopy(pre_properties), **incoming}
        self.properties = next_properties
        self.set_attributes()

        changed = [
            key for key, value in incoming.items()
            if key not in pre_properties or pre_properties[key] != value
        ]
        self.graph.emit(EventType.NODE_PROPERTIES_CHANGE, {
            "id": self.id,
            "keys": changed,
            "preProperties": pre_properties,
            "properties": next_properties,
        })

    def set_property(self, key: str, value: Any) -> None:
        """Set one property and notify listeners if it changed."""
        self._update_properties({key: value})

    def set_properties(self, properties: dict[str, Any]) -> None:
        """
        Merge ``properties`` into a new property map and notify listeners.

        The notification lists the keys that were new or whose value differs;
        re-applying identical values yields an empty key list.
        """
        self._update_properties(properties)

    def delete_property(self, key: str) -> None:
        """Remove a property. ``labelConfig`` is required and cannot be removed."""
        if key == "labelConfig":
            logger.warning("Node %s: labelConfig cannot be deleted", self.id)
            return
        self.properties = {k: v for k, v in self.properties.items() if k != key}
        self.set_attributes()

    # --- Style ---

    def set_style(self, key: str, value: Any) -> None:
        self.style = {**self.style, key: copy.deepcopy(value)}

    def set_styles(self, styles: dict[str, Any]) -> None:
        self.style = {**self.style, **copy.deepcopy(styles)}

    def update_styles(self, styles: dict[str, Any]) -> None:
        """Replace the style overrides entirely."""
        self.style = copy.deepcopy(styles)

    def get_node_style(self) -> dict[str, Any]:
        """Theme defaults, then the shape's theme section, then node overrides."""
        theme = self.graph.theme
        style = copy.deepcopy(theme.get("baseNode", {}))
        if self.shape.theme_key:
            style.update(copy.deepcopy(theme.get(self.shape.theme_key, {})))
        style.update(copy.deepcopy(self.style))
        return style

    def get_text_style(self) -> dict[str, Any]:
        return copy.deepcopy(self.graph.theme.get("nodeText", {}))

    def get_anchor_style(self, anchor: Optional[Anchor] = None) -> dict[str, Any]:
        return copy.deepcopy(self.graph.theme.get("anchor", {}))

    def get_outline_style(self) -> dict[str, Any]:
        return copy.deepcopy(self.graph.theme.get("outline", {}))

    # --- State ---

    def set_selected(self, flag: bool = True) -> None:
        self.is_selected = flag

    def set_hovered(self, flag: bool = True) -> None:
        """Hovering also shows or hides the anchors."""
        self.is_hovered = flag
        self.set_is_show_anchor(flag)

    def set_is_show_anchor(self, flag: bool = True) -> None:
        self.is_show_anchor = flag

    def set_enable_rotate(self, flag: bool = True) -> None:
        self.enable_rotate = flag

    def set_enable_resize(self, flag: bool = True) -> None:
        self.enable_resize = flag

    def set_hittable(self, flag: bool = True) -> None:
        self.is_hittable = flag

    def set_element_state(self, state: ElementState, addition_state_data: Optional[dict] = None) -> None:
        self.state = state
        self.addition_state_data = addition_state_data

    def set_z_index(self, z_index: int = 1) -> None:
        self.z_index = z_index

    def update_attributes(self, attributes: dict[str, Any]) -> None:
        """
        Assign typed attributes in bulk.

        Unknown keys are ignored; free-form data belongs in ``properties``.
        """
        for key, value in attributes.items():
            if key not in UPDATABLE_ATTRIBUTES:
                logger.warning("Node %s: ignoring unknown attribute %r", self.id, key)
                continue
            setattr(self, key, value)

    # --- Snapshot ---

    def get_data(self) -> NodeData:
        """Snapshot used for persistence."""
        return NodeData(
            id=self.id,
            type=self.type,
            x=self._x,
            y=self._y,
            properties=copy.deepcopy(self.properties),
            rotate=self._rotate or None,
            z_index=self.z_index if self.graph.overlap_mode == OverlapMode.INCREASE else None,
            text=self._labels.snapshot(),
        )

    def get_history_data(self) -> NodeData:
        """Snapshot used by undo history; same as ``get_data`` unless overridden."""
        return self.get_data()


def _as_point(value: Union[Point, dict]) -> Point:
    return value if isinstance(value, Point) else Point.model_validate(value)
