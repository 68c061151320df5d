"""
Text labels bound to a node.

A node carries either a single ``TextLabel`` or a list of them, depending on
``LabelConfig.multiple``. ``NodeLabels`` owns that field and keeps its shape in
line with the configuration:
- single mode always holds exactly one record (possibly empty)
- multiple mode holds a list capped at ``LabelConfig.max``
"""

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from .config import get_settings
from .models import LabelConfig, Point, TextLabel

logger = logging.getLogger(__name__)

LabelField = Union[TextLabel, list[TextLabel]]


def default_position(x: float, y: float, index: int = 0) -> dict:
    """Where the ``index``-th label of a node centered at ``(x, y)`` starts."""
    settings = get_settings()
    return {
        "x": x - settings.label_offset,
        "y": y - settings.label_offset + settings.label_stagger * index,
    }


def _provided_fields(item: Any) -> dict:
    """Fields explicitly present on a label record, keyed by alias."""
    if isinstance(item, TextLabel):
        return item.model_dump(by_alias=True)
    return TextLabel.model_validate(item).model_dump(by_alias=True, exclude_unset=True)


def _make_label(item: Any, node_id: str, config: LabelConfig, position: dict) -> TextLabel:
    """Build one label from a string or a (partial) record."""
    defaults = {
        "relateId": node_id,
        "vertical": config.vertical_text,
        "draggable": False,
        "editable": True,
        "isFocus": False,
        **position,
    }
    if isinstance(item, str):
        return TextLabel.model_validate({**defaults, "value": item, "content": item})
    provided = _provided_fields(item)
    merged = {**defaults, **provided}
    merged["content"] = provided.get("content") or provided.get("value", "")
    return TextLabel.model_validate(merged)


def _safe_label(item: Any, node_id: str, config: LabelConfig, position: dict) -> Optional[TextLabel]:
    """Like ``_make_label`` but drops malformed input with a warning."""
    if not isinstance(item, (str, dict, TextLabel)):
        logger.warning("Node %s received unsupported label input %r; ignoring it", node_id, item)
        return None
    try:
        return _make_label(item, node_id, config, position)
    except ValidationError:
        logger.warning("Node %s received an invalid label record %r; ignoring it", node_id, item)
        return None


def _cap(labels: list[TextLabel], config: LabelConfig, node_id: str) -> list[TextLabel]:
    """Drop labels beyond ``config.max``."""
    if config.max is not None and config.max < len(labels):
        logger.warning(
            "Node %s has %d labels but allows at most %d; extra labels are dropped",
            node_id, len(labels), config.max,
        )
        return labels[:config.max]
    return labels


def normalize_text(text: Any, config: LabelConfig, node_id: str, x: float, y: float) -> LabelField:
    """
    Canonicalize the ``text`` input of a node.

    Accepts nothing, a string, a single record, or a list of strings/records.
    The result is a list when ``config.multiple`` is set and a single record
    otherwise; labels beyond ``config.max`` are dropped.
    """
    if isinstance(text, list):
        labels = []
        for index, item in enumerate(text):
            label = _safe_label(item, node_id, config, default_position(x, y, index))
            if label is not None:
                labels.append(label)
        labels = _cap(labels, config, node_id)
        if config.multiple:
            return labels
        if labels:
            return labels[0]
        return _make_label("", node_id, config, default_position(x, y))

    if isinstance(text, (str, dict, TextLabel)) and text != "":
        label = _safe_label(text, node_id, config, default_position(x, y))
        if label is not None:
            return _cap([label], config, node_id) if config.multiple else label
    elif text not in (None, ""):
        logger.warning("Node %s received unsupported label input %r; ignoring it", node_id, text)

    # Multiple mode starts empty, single mode always has one record
    if config.multiple:
        return []
    return _make_label("", node_id, config, default_position(x, y))


class NodeLabels:
    """The label field of one node and the operations that mutate it."""

    def __init__(self, text: Any, config: LabelConfig, node_id: str, x: float, y: float):
        self.text: LabelField = normalize_text(text, config, node_id, x, y)

    def __iter__(self):
        return iter(self.to_list())

    def __len__(self) -> int:
        return len(self.to_list())

    def to_list(self) -> list[TextLabel]:
        """Labels as a list regardless of mode."""
        if isinstance(self.text, list):
            return list(self.text)
        return [self.text]

    def find(self, label_id: Optional[str]) -> Optional[TextLabel]:
        for label in self.to_list():
            if label.id == label_id:
                return label
        return None

    def add(self, config: LabelConfig, position: Any, node_id: str) -> Optional[TextLabel]:
        """
        Add an empty, focused label at ``position``.

        In single mode no record is created; the existing one is focused.

        Returns:
            The new (or focused) label, or ``None`` when ``max`` is reached
        """
        if not isinstance(self.text, list):
            self.text.is_focus = True
            return self.text
        if config.max is not None and len(self.text) >= config.max:
            logger.debug("Node %s already has %d labels; not adding another", node_id, len(self.text))
            return None
        point = position if isinstance(position, Point) else Point.model_validate(position)
        label = TextLabel(
            relate_id=node_id,
            x=point.x,
            y=point.y,
            is_focus=True,
            vertical=config.vertical_text,
        )
        self.text.append(label)
        return label

    @staticmethod
    def _merge(label: TextLabel, value: Union[str, dict]) -> None:
        if isinstance(value, str):
            label.value = value
            label.content = value
            label.is_focus = False
            return
        fields = TextLabel.model_validate(value).model_dump(exclude_unset=True)
        fields.pop("id", None)
        for name, field_value in fields.items():
            setattr(label, name, field_value)

    def update(self, value: Union[str, dict], label_id: Optional[str]) -> Optional[TextLabel]:
        """
        Merge ``value`` into the label with ``label_id``.

        A string sets both value and content. Unknown ids are ignored.
        """
        label = self.find(label_id)
        if label is None:
            return None
        try:
            self._merge(label, value)
        except ValidationError:
            logger.warning("Ignoring invalid update %r for label %s", value, label_id)
            return None
        return label

    def delete(self, index: Optional[int] = None, label_id: Optional[str] = None) -> Optional[TextLabel]:
        """
        Remove a label by index or id; in single mode only clear its text.

        Returns:
            The removed or cleared label, or ``None`` if nothing matched
        """
        if not isinstance(self.text, list):
            self.text.value = ""
            self.text.content = ""
            return self.text
        if index is not None:
            if 0 <= index < len(self.text):
                return self.text.pop(index)
            return None
        for position, label in enumerate(self.text):
            if label.id == label_id:
                return self.text.pop(position)
        return None

    def shift(self, dx: float, dy: float) -> None:
        """Move every label by ``(dx, dy)``."""
        for label in self.to_list():
            label.x += dx
            label.y += dy

    def conform(self, config: LabelConfig, node_id: str, x: float, y: float) -> None:
        """Reshape the field to match ``config``: list or single record, capped at ``max``."""
        if config.multiple and not isinstance(self.text, list):
            self.text = _cap([self.text] if self.text.value else [], config, node_id)
        elif not config.multiple and isinstance(self.text, list):
            if self.text:
                self.text = self.text[0]
            else:
                self.text = _make_label("", node_id, config, default_position(x, y))
        elif config.multiple:
            self.text = _cap(self.text, config, node_id)

    def snapshot(self) -> Union[dict, list[dict], None]:
        """Persisted form; an empty single label is omitted."""
        if isinstance(self.text, list):
            return [label.snapshot() for label in self.text]
        if self.text.value:
            return self.text.snapshot()
        return None
