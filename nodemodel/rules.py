"""
Rule evaluation for connecting and moving nodes.

Connection rules are ordered predicate chains that stop at the first failure.
Move rules are callables ``rule(node, dx, dy)`` returning either a boolean or
a per-axis permission (``MoveAllowance``, a ``{"x": .., "y": ..}`` dict or an
``(x, y)`` pair).
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Union

from .models import Anchor, ConnectRule, ConnectRuleResult, MoveAllowance

if TYPE_CHECKING:
    from .node import Node

logger = logging.getLogger(__name__)

MoveRule = Callable[["Node", float, float], Any]


def evaluate_connect_rules(
    node: "Node",
    rules: Iterable[ConnectRule],
    source: "Node",
    target: "Node",
    source_anchor: Optional[Anchor] = None,
    target_anchor: Optional[Anchor] = None,
    edge_id: Optional[str] = None,
) -> ConnectRuleResult:
    """
    Run ``rules`` in order on behalf of ``node``.

    Args:
        node: The node owning the chain, passed to each predicate first
        rules: The rule chain
        source: Edge source node
        target: Edge target node
        source_anchor: Anchor on the source, if known
        target_anchor: Anchor on the target, if known
        edge_id: Id of the edge being re-attached, if any

    Returns:
        The first failing rule's message, or a passing result
    """
    for rule in rules:
        if not rule.validate(node, source, target, source_anchor, target_anchor, edge_id):
            return ConnectRuleResult(all_passed=False, message=rule.message)
    return ConnectRuleResult(all_passed=True, message="")


def _as_allowance(result: Any) -> Optional[MoveAllowance]:
    """Interpret a per-axis rule result, or ``None`` for a plain boolean."""
    if isinstance(result, MoveAllowance):
        return result
    if isinstance(result, dict):
        return MoveAllowance(x=bool(result.get("x")), y=bool(result.get("y")))
    if isinstance(result, (tuple, list)) and len(result) == 2:
        return MoveAllowance(x=bool(result[0]), y=bool(result[1]))
    return None


def evaluate_move_rules(
    node: "Node", rules: Iterable[MoveRule], dx: float, dy: float
) -> Union[bool, MoveAllowance]:
    """
    Check whether ``node`` may move by ``(dx, dy)``.

    A falsy result from any rule vetoes the move, as does a per-axis result
    denying both axes. Otherwise per-axis results are AND-ed together.

    Returns:
        ``False`` on veto, else the accumulated per-axis permission
    """
    allow_x = True
    allow_y = True
    for rule in rules:
        result = rule(node, dx, dy)
        if not result:
            logger.debug("Move of node %s by (%s, %s) vetoed by %r", node.id, dx, dy, rule)
            return False
        allowance = _as_allowance(result)
        if allowance is None:
            continue
        if not allowance.x and not allowance.y:
            logger.debug("Move of node %s by (%s, %s) vetoed by %r", node.id, dx, dy, rule)
            return False
        allow_x = allow_x and allowance.x
        allow_y = allow_y and allowance.y
    return MoveAllowance(x=allow_x, y=allow_y)


def resolve_move_axes(result: Union[bool, MoveAllowance]) -> tuple[bool, bool]:
    """Split an aggregated move result into ``(allow_x, allow_y)``."""
    if isinstance(result, MoveAllowance):
        return result.x, result.y
    return bool(result), bool(result)
