"""
Core data records for diagram nodes.

These models define the canonical shapes exchanged with the rest of the editor:
- Node construction input and the persisted data snapshot
- Text labels and the per-node label configuration
- Anchors, bounds and resize payloads
- Connection rule records and their evaluation result

Field Naming Convention:
- Python attributes are snake_case
- JSON input/output uses the editor's camelCase keys (``relateId``, ``zIndex``)
- Legacy spellings are accepted on input and converted
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import uuid


class OverlapMode(str, Enum):
    """How the owning graph orders overlapping nodes."""
    DEFAULT = "default"     # selected node is raised, z-index not persisted
    INCREASE = "increase"   # every node gets a growing z-index, persisted


class ElementState(IntEnum):
    """Interaction state of an element."""
    DEFAULT = 1
    TEXT_EDIT = 2
    SHOW_MENU = 3
    ALLOW_CONNECT = 4
    NOT_ALLOW_CONNECT = 5


class EventType(str, Enum):
    """Events a node emits through the graph's event center."""
    NODE_PROPERTIES_CHANGE = "node:properties-change"
    LABEL_ADD = "label:add"
    LABEL_UPDATE = "label:update"
    LABEL_DELETE = "label:delete"
    LABEL_MOVE = "label:move"


def generate_id() -> str:
    """Generate a unique element ID."""
    return str(uuid.uuid4())


# --- Geometry ---

class Point(BaseModel):
    """A point on the canvas."""
    x: float = 0
    y: float = 0


class Anchor(BaseModel):
    """
    A connection point on a node.

    Extra keys from an explicit offset record (e.g. ``type`` or ``edgeAddable``)
    are kept so custom shapes can tag their anchors.
    """
    model_config = ConfigDict(extra="allow")

    id: str
    x: float
    y: float


class ClosestAnchor(BaseModel):
    """Result of a nearest-anchor lookup."""
    index: int
    anchor: Anchor


class BoxBounds(BaseModel):
    """Axis-aligned bounding box (x1, y1) top-left, (x2, y2) bottom-right."""
    x1: float
    y1: float
    x2: float
    y2: float


class ResizeInfo(BaseModel):
    """Payload produced by a resize handle drag."""
    model_config = ConfigDict(populate_by_name=True)

    width: float
    height: float
    delta_x: float = Field(0, alias="deltaX")
    delta_y: float = Field(0, alias="deltaY")


# --- Labels ---

class LabelConfig(BaseModel):
    """Per-node policy for single vs multiple text labels."""
    model_config = ConfigDict(populate_by_name=True)

    multiple: bool = False
    max: Optional[int] = None
    vertical_text: bool = Field(False, alias="verticalText")

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Accept the older ``verticle``/``vertical`` spellings."""
        if isinstance(data, dict):
            data = dict(data)
            for legacy in ("verticle", "vertical"):
                if legacy in data and "verticalText" not in data and "vertical_text" not in data:
                    data["verticalText"] = data.pop(legacy)
        return data

    @field_validator("max")
    @classmethod
    def check_max(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError("max must be >= 0")
        return value

    def to_json_dict(self) -> dict:
        """Convert to the dict stored under ``properties['labelConfig']``."""
        result = {"multiple": self.multiple, "verticalText": self.vertical_text}
        if self.max is not None:
            result["max"] = self.max
        return result


class TextLabel(BaseModel):
    """A positioned text record bound to a node."""
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str = Field(default_factory=generate_id)
    relate_id: str = Field("", alias="relateId")
    value: str = ""
    content: str = ""   # rendered form, may differ from value (rich text)
    x: float = 0
    y: float = 0
    draggable: bool = False
    editable: bool = True
    is_focus: bool = Field(False, alias="isFocus")
    vertical: bool = False

    def snapshot(self) -> dict:
        """The persisted projection of this label."""
        return {"x": self.x, "y": self.y, "value": self.value, "content": self.content}

    def to_json_dict(self) -> dict:
        """Convert to a JSON-serializable dict with editor key names."""
        return self.model_dump(by_alias=True)


# --- Rules ---

@dataclass
class ConnectRule:
    """
    A predicate gating whether a node may serve as an edge's source or target.

    ``validate`` is called as
    ``validate(node, source, target, source_anchor, target_anchor, edge_id)``
    where ``node`` is the node evaluating the rule.
    """
    validate: Callable[..., bool]
    message: str = ""


class ConnectRuleResult(BaseModel):
    """Outcome of a connection rule chain."""
    all_passed: bool = True
    message: str = ""


class MoveAllowance(BaseModel):
    """Per-axis move permission returned by a move rule."""
    x: bool = True
    y: bool = True


# --- Node input / output ---

class NodeConfig(BaseModel):
    """Input accepted when creating a node."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    type: str = "rect"
    x: float = 0
    y: float = 0
    width: Optional[float] = None
    height: Optional[float] = None
    rotate: float = 0
    z_index: Optional[int] = Field(None, alias="zIndex")
    text: Any = None  # canonicalized by the node; malformed input degrades to an empty label
    properties: dict[str, Any] = Field(default_factory=dict)
    anchors_offset: list[Any] = Field(default_factory=list, alias="anchorsOffset")
    style: dict[str, Any] = Field(default_factory=dict)

    @field_validator("properties", "style", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class NodeData(BaseModel):
    """Serializable snapshot of a node, used for persistence and history."""
    id: str
    type: str
    x: float
    y: float
    properties: dict[str, Any] = Field(default_factory=dict)
    rotate: Optional[float] = None
    z_index: Optional[int] = None
    text: Union[dict, list[dict], None] = None

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict with editor key names."""
        result = {
            "id": self.id,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "properties": self.properties,
        }
        # Optional keys are only present when meaningful
        if self.rotate:
            result["rotate"] = self.rotate
        if self.z_index is not None:
            result["zIndex"] = self.z_index
        if self.text is not None:
            result["text"] = self.text
        return result
