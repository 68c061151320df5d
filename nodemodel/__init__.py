"""
Node Model - Shapes, anchors, rules and labels of a diagram node.

This module provides the node data model used by the editor: geometry and
rotation, anchor resolution, connection and move rules, text labels, and the
property/style mutation API with change notifications.
"""

from .models import (
    # Enums
    OverlapMode,
    ElementState,
    EventType,
    # Records
    Point,
    Anchor,
    ClosestAnchor,
    BoxBounds,
    ResizeInfo,
    LabelConfig,
    TextLabel,
    ConnectRule,
    ConnectRuleResult,
    MoveAllowance,
    NodeConfig,
    NodeData,
)

from .config import NodeModelSettings, get_settings
from .graph import GraphModel, EventCenter, EditConfig
from .node import Node
from .shapes import (
    NodeShape,
    RectShape,
    CircleShape,
    EllipseShape,
    DiamondShape,
    PolygonShape,
    TextShape,
    get_shape,
    register_shape,
)
from .transform import Matrix, rotation_matrix, rotate_point
from .validation import validate_node, validation_summary, ValidationIssue, IssueSeverity

__all__ = [
    # Enums
    "OverlapMode",
    "ElementState",
    "EventType",
    # Records
    "Point",
    "Anchor",
    "ClosestAnchor",
    "BoxBounds",
    "ResizeInfo",
    "LabelConfig",
    "TextLabel",
    "ConnectRule",
    "ConnectRuleResult",
    "MoveAllowance",
    "NodeConfig",
    "NodeData",
    # Configuration
    "NodeModelSettings",
    "get_settings",
    # Graph context
    "GraphModel",
    "EventCenter",
    "EditConfig",
    # Node
    "Node",
    # Shapes
    "NodeShape",
    "RectShape",
    "CircleShape",
    "EllipseShape",
    "DiamondShape",
    "PolygonShape",
    "TextShape",
    "get_shape",
    "register_shape",
    # Transform
    "Matrix",
    "rotation_matrix",
    "rotate_point",
    # Validation
    "validate_node",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
]
