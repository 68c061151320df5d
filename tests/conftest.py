"""Shared fixtures for the node model tests."""
from __future__ import annotations

import pytest

from nodemodel import GraphModel, Node


@pytest.fixture
def graph() -> GraphModel:
    return GraphModel()


@pytest.fixture
def make_node(graph):
    """Build a rect node at (100, 100), 100x80, on the shared ``graph``."""
    def _make(**data) -> Node:
        data.setdefault("id", "n1")
        data.setdefault("type", "rect")
        data.setdefault("x", 100)
        data.setdefault("y", 100)
        data.setdefault("width", 100)
        data.setdefault("height", 80)
        return Node(data, graph)
    return _make


@pytest.fixture
def events(graph):
    """Record every (event, payload) emitted on ``graph``."""
    recorded: list[tuple[str, dict]] = []
    for name in (
        "node:properties-change",
        "label:add",
        "label:update",
        "label:delete",
        "label:move",
    ):
        graph.on(name, lambda payload, name=name: recorded.append((name, payload)))
    return recorded
