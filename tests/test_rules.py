"""Tests for connection rules and move rules."""
from __future__ import annotations

import pytest

from nodemodel import ConnectRule, ConnectRuleResult, MoveAllowance, Node


# ─────────────────────────────────────────────────────────
# Connection rules
# ─────────────────────────────────────────────────────────


class TestConnectRules:
    def test_no_rules_passes(self, make_node):
        source, target = make_node(id="a"), make_node(id="b")
        assert source.is_allow_connected_as_source(target) == ConnectRuleResult(all_passed=True, message="")

    def test_short_circuit_on_first_failure(self, make_node):
        calls = []
        source, target = make_node(id="a"), make_node(id="b")
        source.source_rules.append(ConnectRule(validate=lambda *args: False, message="no"))
        source.source_rules.append(ConnectRule(validate=lambda *args: calls.append(args) or True, message="b"))

        result = source.is_allow_connected_as_source(target)

        assert result.all_passed is False
        assert result.message == "no"
        assert calls == []

    def test_predicate_receives_owner_and_endpoints(self, make_node):
        seen = []
        source, target = make_node(id="a"), make_node(id="b")

        def rule(node, src, tgt, source_anchor, target_anchor, edge_id):
            seen.append((node.id, src.id, tgt.id, source_anchor.id, target_anchor, edge_id))
            return True

        target.target_rules.append(ConnectRule(validate=rule, message="x"))
        anchor = source.anchors[1]
        assert target.is_allow_connected_as_target(source, anchor, None, "e1").all_passed
        assert seen == [("b", "a", "b", "a_1", None, "e1")]

    def test_rule_can_inspect_owner_fields(self, make_node):
        source, target = make_node(id="a"), make_node(id="b")
        target.set_property("locked", True)
        target.target_rules.append(ConnectRule(
            validate=lambda node, *_: not node.properties.get("locked"),
            message="locked",
        ))
        assert target.is_allow_connected_as_target(source).message == "locked"

    def test_chain_is_cached_after_first_check(self, make_node):
        source, target = make_node(id="a"), make_node(id="b")
        assert source.is_allow_connected_as_source(target).all_passed
        source.source_rules.append(ConnectRule(validate=lambda *args: False, message="late"))
        assert source.is_allow_connected_as_source(target).all_passed

    def test_source_and_target_chains_are_independent(self, make_node):
        source, target = make_node(id="a"), make_node(id="b")
        source.target_rules.append(ConnectRule(validate=lambda *args: False, message="t"))
        assert source.is_allow_connected_as_source(target).all_passed
        assert source.is_allow_connected_as_target(target).message == "t"

    def test_shape_hook_supplies_chain(self, graph):
        from nodemodel import RectShape

        class GuardedRect(RectShape):
            def connected_source_rules(self, node):
                return [ConnectRule(validate=lambda *args: False, message="guarded")]

        source = Node({"id": "a", "type": "rect"}, graph, shape=GuardedRect())
        target = Node({"id": "b", "type": "rect"}, graph)
        assert source.is_allow_connected_as_source(target).message == "guarded"

    def test_rule_exceptions_propagate(self, make_node):
        source, target = make_node(id="a"), make_node(id="b")

        def broken(*args):
            raise RuntimeError("boom")

        source.source_rules.append(ConnectRule(validate=broken))
        with pytest.raises(RuntimeError):
            source.is_allow_connected_as_source(target)


# ─────────────────────────────────────────────────────────
# Move rule aggregation
# ─────────────────────────────────────────────────────────


class TestMoveRuleAggregation:
    def test_no_rules_allows_both_axes(self, make_node):
        assert make_node().is_allow_move_node(5, 5) == MoveAllowance(x=True, y=True)

    def test_false_vetoes(self, make_node):
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: False)
        assert node.is_allow_move_node(5, 5) is False

    def test_none_vetoes(self, make_node):
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: None)
        assert node.is_allow_move_node(5, 5) is False

    def test_both_axes_denied_vetoes(self, make_node):
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: {"x": False, "y": False})
        assert node.is_allow_move_node(5, 5) is False

    def test_per_axis_results_are_anded(self, make_node):
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: MoveAllowance(x=False, y=True))
        node.add_node_move_rule(lambda n, dx, dy: (True, True))
        assert node.is_allow_move_node(5, 5) == MoveAllowance(x=False, y=True)

    def test_rule_receives_node_and_delta(self, make_node):
        seen = []
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: seen.append((n.id, dx, dy)) or True)
        node.move(3, 4)
        assert seen == [("n1", 3, 4)]

    def test_node_rule_added_once(self, make_node):
        node = make_node()

        def rule(n, dx, dy):
            return True

        node.add_node_move_rule(rule)
        node.add_node_move_rule(rule)
        assert node.move_rules == [rule]

    def test_graph_rule_applies_to_every_node(self, graph, make_node):
        a, b = make_node(id="a"), make_node(id="b")
        graph.add_node_move_rule(lambda n, dx, dy: dx <= 10)
        assert a.move(20, 0) is False
        assert b.move(20, 0) is False
        assert b.move(5, 0) is True

    def test_graph_rules_view_is_read_only(self, graph):
        assert isinstance(graph.node_move_rules, tuple)


# ─────────────────────────────────────────────────────────
# move / move_to / get_move_distance
# ─────────────────────────────────────────────────────────


class TestMove:
    def test_free_move_shifts_node_and_label(self, make_node):
        node = make_node(text="hi")
        assert node.move(10, -5) is True
        assert (node.x, node.y) == (110, 95)
        assert (node.text.x, node.text.y) == (100, 85)

    def test_per_axis_denial(self, make_node):
        node = make_node(text="hi")
        node.add_node_move_rule(lambda n, dx, dy: {"x": False, "y": True})
        assert node.move(10, 10) is True
        assert (node.x, node.y) == (100, 110)
        assert (node.text.x, node.text.y) == (90, 100)

    def test_veto_moves_nothing(self, make_node):
        node = make_node(text="hi")
        node.add_node_move_rule(lambda n, dx, dy: False)
        assert node.move(10, 10) is False
        assert (node.x, node.y) == (100, 100)
        assert (node.text.x, node.text.y) == (90, 90)

    def test_ignore_rules(self, make_node):
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: False)
        assert node.move(10, 10, ignore_rules=True) is True
        assert (node.x, node.y) == (110, 110)

    def test_multiple_labels_shift(self, make_node):
        node = make_node(text=["a", "b"], properties={"labelConfig": {"multiple": True}})
        node.move(5, 5)
        assert [(label.x, label.y) for label in node.text] == [(95, 95), (95, 115)]

    def test_move_to_whole_vector(self, make_node):
        node = make_node(text="hi")
        assert node.move_to(0, 0) is True
        assert (node.x, node.y) == (0, 0)
        assert (node.text.x, node.text.y) == (-10, -10)

    def test_move_to_rejected_outright(self, make_node):
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: False)
        assert node.move_to(0, 0) is False
        assert (node.x, node.y) == (100, 100)

    def test_move_to_has_no_per_axis_decomposition(self, make_node):
        """A per-axis result does not block move_to on either axis."""
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: {"x": False, "y": True})
        assert node.move_to(0, 0) is True
        assert (node.x, node.y) == (0, 0)

    def test_move_to_ignore_rules(self, make_node):
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: False)
        assert node.move_to(1, 2, ignore_rules=True) is True
        assert (node.x, node.y) == (1, 2)

    def test_get_move_distance_reports_applied_delta(self, make_node):
        node = make_node()
        node.add_node_move_rule(lambda n, dx, dy: (True, False))
        assert node.get_move_distance(7, 9) == (7, 0)
        assert (node.x, node.y) == (107, 100)

    def test_get_move_distance_zero_delta(self, make_node):
        node = make_node()
        assert node.get_move_distance(0, 4) == (0, 4)

    def test_move_emits_label_move(self, make_node, events):
        node = make_node()
        node.move(3, 0)
        assert ("label:move", {"id": "n1", "deltaX": 3, "deltaY": 0}) in events
