"""Tests for node construction, flags, resize and snapshots."""
from __future__ import annotations

import logging
import math

import pytest
from pydantic import ValidationError

from nodemodel import (
    EditConfig,
    ElementState,
    GraphModel,
    Node,
    OverlapMode,
    RectShape,
    ResizeInfo,
)


# ─────────────────────────────────────────────────────────
# Construction
# ─────────────────────────────────────────────────────────


class TestConstruction:
    def test_defaults(self):
        node = Node({"id": "n", "x": 10, "y": 20})
        assert node.type == "rect"
        assert (node.width, node.height) == (100, 80)
        assert node.rotate == 0
        assert node.is_hittable is True
        assert node.state == ElementState.DEFAULT
        assert isinstance(node.shape, RectShape)

    def test_explicit_id_wins(self):
        graph = GraphModel(id_generator=lambda node_type: "generated")
        assert Node({"id": "mine"}, graph).id == "mine"

    def test_graph_generator_used_without_id(self):
        graph = GraphModel(id_generator=lambda node_type: f"{node_type}-1")
        assert Node({"type": "circle"}, graph).id == "circle-1"

    def test_shape_id_precedes_graph_generator(self):
        class NamedRect(RectShape):
            def create_id(self, node):
                return "from-shape"

        graph = GraphModel(id_generator=lambda node_type: "generated")
        assert Node({}, graph, shape=NamedRect()).id == "from-shape"

    def test_generator_returning_none_falls_back_to_uuid(self):
        graph = GraphModel(id_generator=lambda node_type: None)
        assert len(Node({}, graph).id) == 36

    def test_ids_are_unique(self):
        assert Node({}).id != Node({}).id

    def test_input_maps_are_copied(self):
        properties = {"meta": {"k": 1}}
        node = Node({"properties": properties})
        properties["meta"]["k"] = 2
        assert node.properties["meta"] == {"k": 1}

    def test_camel_case_input(self):
        node = Node({"zIndex": 5, "anchorsOffset": [[1, 2]]})
        assert node.z_index == 5
        assert node.anchors_offset == [[1, 2]]

    def test_invalid_input_raises(self):
        with pytest.raises(ValidationError):
            Node({"x": "left"})

    def test_label_config_defaults_from_edit_config(self):
        graph = GraphModel(edit_config=EditConfig(multiple_node_text=True))
        node = Node({"id": "n"}, graph)
        assert node.properties["labelConfig"] == {"multiple": True, "verticalText": False}
        assert node.text == []

    def test_legacy_vertical_spelling(self, make_node):
        node = make_node(properties={"labelConfig": {"verticle": True}})
        assert node.properties["labelConfig"] == {"multiple": False, "verticalText": True}
        assert node.label_config.vertical_text is True


class TestOverlapMode:
    def test_increase_mode_assigns_growing_z_index(self):
        graph = GraphModel(overlap_mode=OverlapMode.INCREASE)
        first, second = Node({}, graph), Node({}, graph)
        assert (first.z_index, second.z_index) == (1, 2)

    def test_increase_mode_keeps_explicit_z_index(self):
        graph = GraphModel(overlap_mode=OverlapMode.INCREASE)
        assert Node({"zIndex": 7}, graph).z_index == 7

    def test_z_index_persisted_only_in_increase_mode(self):
        increase = Node({"id": "a"}, GraphModel(overlap_mode=OverlapMode.INCREASE))
        default = Node({"id": "b"}, GraphModel())
        assert increase.get_data().to_json_dict()["zIndex"] == 1
        assert "zIndex" not in default.get_data().to_json_dict()


# ─────────────────────────────────────────────────────────
# Snapshots
# ─────────────────────────────────────────────────────────


class TestSnapshot:
    def test_minimal_snapshot(self, make_node):
        data = make_node().get_data().to_json_dict()
        assert data == {
            "id": "n1",
            "type": "rect",
            "x": 100,
            "y": 100,
            "properties": {"labelConfig": {"multiple": False, "verticalText": False}},
        }

    def test_rotation_included_when_non_zero(self, make_node):
        data = make_node(rotate=math.pi / 4).get_data()
        assert data.rotate == pytest.approx(math.pi / 4)
        assert "rotate" in data.to_json_dict()

    def test_single_label_snapshot(self, make_node):
        data = make_node(text="hi").get_data()
        assert data.text == {"x": 90, "y": 90, "value": "hi", "content": "hi"}

    def test_label_list_snapshot(self, make_node):
        data = make_node(text=["a"], properties={"labelConfig": {"multiple": True}}).get_data()
        assert data.text == [{"x": 90, "y": 90, "value": "a", "content": "a"}]

    def test_snapshot_is_detached(self, make_node):
        node = make_node(properties={"k": [1]})
        data = node.get_data()
        data.properties["k"].append(2)
        assert node.properties["k"] == [1]

    def test_history_data_matches_data(self, make_node):
        node = make_node(text="hi")
        assert node.get_history_data() == node.get_data()


# ─────────────────────────────────────────────────────────
# Resize
# ─────────────────────────────────────────────────────────


class TestResize:
    def test_rect_moves_half_delta_and_records_size(self, make_node):
        node = make_node()
        data = node.resize({"width": 120, "height": 100, "deltaX": 20, "deltaY": 20})
        assert (node.x, node.y) == (110, 110)
        assert (node.width, node.height) == (120, 100)
        assert node.properties["width"] == 120
        assert node.properties["height"] == 100
        assert (data.x, data.y) == (110, 110)

    def test_resize_accepts_model(self, make_node):
        node = make_node()
        node.resize(ResizeInfo(width=50, height=50))
        assert (node.x, node.y, node.width) == (100, 100, 50)

    def test_resize_below_minimum_is_allowed(self, make_node):
        node = make_node()
        node.resize({"width": 5, "height": 5})
        assert node.width == 5

    def test_resize_emits_property_change(self, make_node, events):
        make_node().resize({"width": 120, "height": 80})
        changes = [payload for name, payload in events if name == "node:properties-change"]
        assert sorted(changes[-1]["keys"]) == ["height", "width"]

    def test_circle_keeps_equal_sides(self, make_node):
        node = make_node(type="circle", properties={"r": 50})
        node.resize({"width": 80, "height": 60})
        assert node.properties["r"] == 30
        assert (node.width, node.height) == (60, 60)

    def test_resize_respects_move_rules(self, make_node):
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: False)
        node.resize({"width": 120, "height": 100, "deltaX": 20, "deltaY": 20})
        assert (node.x, node.y) == (100, 100)
        assert node.width == 120


# ─────────────────────────────────────────────────────────
# Flags and bulk attributes
# ─────────────────────────────────────────────────────────


class TestFlags:
    def test_hover_toggles_anchor_visibility(self, make_node):
        node = make_node()
        node.set_hovered(True)
        assert node.is_hovered and node.is_show_anchor
        node.set_hovered(False)
        assert not node.is_hovered and not node.is_show_anchor

    def test_simple_setters(self, make_node):
        node = make_node()
        node.set_selected(True)
        node.set_enable_rotate(False)
        node.set_enable_resize(False)
        node.set_hittable(False)
        node.set_z_index(9)
        assert node.is_selected is True
        assert node.enable_rotate is False
        assert node.enable_resize is False
        assert node.is_hittable is False
        assert node.z_index == 9

    def test_element_state(self, make_node):
        node = make_node()
        node.set_element_state(ElementState.NOT_ALLOW_CONNECT, {"reason": "x"})
        assert node.state == ElementState.NOT_ALLOW_CONNECT
        assert node.addition_state_data == {"reason": "x"}

    def test_update_attributes_assigns_known_keys(self, make_node):
        node = make_node()
        node.update_attributes({"x": 0, "is_selected": True})
        assert node.x == 0
        assert node.is_selected is True
        assert node.transform == "matrix(1,0,0,1,0,0)"

    def test_update_attributes_ignores_unknown_keys(self, make_node, caplog):
        node = make_node()
        with caplog.at_level(logging.WARNING, logger="nodemodel.node"):
            node.update_attributes({"bogus": 1, "properties": {}})
        assert not hasattr(node, "bogus")
        assert "labelConfig" in node.properties
        assert "bogus" in caplog.text
