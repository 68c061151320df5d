"""
Graph context - the parts of the owning graph a node depends on.

A node never owns graph-wide state. It reads from its ``GraphModel``:
- id generation for nodes created without an id
- the overlap mode and z-index counter
- the graph-wide move rule list (read-only view)
- theme defaults and edit configuration
- the event center used for change notifications
"""

import copy
import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from .config import get_settings
from .models import OverlapMode
from .rules import MoveRule

logger = logging.getLogger(__name__)

Listener = Callable[[dict], Any]


def _event_name(event: Any) -> str:
    return event.value if isinstance(event, Enum) else str(event)


DEFAULT_THEME: dict[str, dict[str, Any]] = {
    "baseNode": {"fill": "#ffffff", "stroke": "#3478f6", "strokeWidth": 2},
    "rect": {},
    "circle": {},
    "ellipse": {},
    "diamond": {},
    "polygon": {},
    "text": {"fill": "transparent", "stroke": "transparent"},
    "nodeText": {"color": "#000000", "fontSize": 12, "overflowMode": "default"},
    "anchor": {"r": 3, "fill": "#ffffff", "stroke": "#3478f6", "strokeWidth": 1},
    "outline": {"fill": "transparent", "stroke": "#949494", "strokeDasharray": "3,3"},
}


class EditConfig(BaseModel):
    """Graph-level editing defaults consulted when a node is created."""
    multiple_node_text: bool = Field(default_factory=lambda: get_settings().multiple_node_text)
    node_text_vertical: bool = Field(default_factory=lambda: get_settings().node_text_vertical)


class EventCenter:
    """
    Synchronous event dispatch.

    Listeners run in registration order inside the emitting call, so a
    listener that mutates a node finishes before the mutation returns.
    """

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, callback: Listener) -> None:
        """Register a callback for ``event``."""
        self._listeners[_event_name(event)].append(callback)

    def off(self, event: str, callback: Optional[Listener] = None) -> None:
        """Remove one callback, or every callback for ``event``."""
        if callback is None:
            self._listeners.pop(_event_name(event), None)
            return
        listeners = self._listeners.get(_event_name(event), [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event: str, payload: dict) -> None:
        """Notify all registered callbacks of ``event``."""
        for callback in list(self._listeners.get(_event_name(event), [])):
            callback(payload)


class GraphModel:
    """
    Graph-owned state shared by every node of one graph.

    The canonical graph-wide move rule list lives here; nodes only see the
    tuple returned by ``node_move_rules``, so additions go through
    ``add_node_move_rule``.
    """

    def __init__(
        self,
        overlap_mode: Optional[OverlapMode] = None,
        id_generator: Optional[Callable[[str], Optional[str]]] = None,
        theme: Optional[dict[str, dict[str, Any]]] = None,
        edit_config: Optional[EditConfig] = None,
    ):
        self.overlap_mode = OverlapMode(overlap_mode or get_settings().overlap_mode)
        self.id_generator = id_generator
        self.theme = copy.deepcopy(DEFAULT_THEME)
        for key, section in (theme or {}).items():
            self.theme.setdefault(key, {}).update(section)
        self.edit_config = edit_config or EditConfig()
        self.event_center = EventCenter()
        self._node_move_rules: list[MoveRule] = []
        self._z_index = 0

    # --- Move Rules ---

    @property
    def node_move_rules(self) -> tuple[MoveRule, ...]:
        """Read-only view of the graph-wide move rules."""
        return tuple(self._node_move_rules)

    def add_node_move_rule(self, rule: MoveRule) -> None:
        """Add a rule applied to every node of this graph."""
        if rule not in self._node_move_rules:
            self._node_move_rules.append(rule)

    def remove_node_move_rule(self, rule: MoveRule) -> None:
        if rule in self._node_move_rules:
            self._node_move_rules.remove(rule)

    # --- Ids and ordering ---

    def generate_id(self, node_type: str) -> Optional[str]:
        """Id from the user-supplied generator, if any."""
        if self.id_generator is None:
            return None
        return self.id_generator(node_type)

    def next_z_index(self) -> int:
        """Next value of the growing z-index used in increase mode."""
        self._z_index += 1
        return self._z_index

    # --- Events ---

    def on(self, event: str, callback: Listener) -> None:
        self.event_center.on(event, callback)

    def emit(self, event: str, payload: dict) -> None:
        logger.debug("Emitting %s", _event_name(event))
        self.event_center.emit(event, payload)
