"""
Node validation - Check a node for state worth reviewing.

The model itself never rejects these states (sizes outside the advisory
bounds are allowed by ``resize``), so editors and tooling can use this report
to surface them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .node import Node


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found on a node."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    label_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.label_id:
            result["label_id"] = self.label_id
        return result


def validate_node(node: "Node") -> list[ValidationIssue]:
    """
    Validate a node and return a list of issues.

    Checks for:
    - Width/height outside the advisory min/max bounds - WARNING
    - Each label beyond labelConfig.max - WARNING, with its label id
    - Label field shape not matching labelConfig.multiple - ERROR
    - Duplicate anchor ids - ERROR
    - Node with no anchors - INFO

    Args:
        node: The node to validate

    Returns:
        List of ValidationIssue objects
    """
    issues: list[ValidationIssue] = []

    # Advisory size bounds
    if not node.min_width <= node.width <= node.max_width:
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Width {node.width} outside [{node.min_width}, {node.max_width}]",
            node_id=node.id
        ))
    if not node.min_height <= node.height <= node.max_height:
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Height {node.height} outside [{node.min_height}, {node.max_height}]",
            node_id=node.id
        ))

    # Label field
    config = node.label_config
    if config.multiple != isinstance(node.text, list):
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message="Label field does not match labelConfig.multiple",
            node_id=node.id
        ))
    if config.max is not None:
        for label in node.labels[config.max:]:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Label exceeds labelConfig.max of {config.max}",
                node_id=node.id,
                label_id=label.id
            ))

    # Anchors
    anchors = node.anchors
    if not anchors:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Node has no anchors; edges cannot attach",
            node_id=node.id
        ))
    seen_ids: set[str] = set()
    for anchor in anchors:
        if anchor.id in seen_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Duplicate anchor id: {anchor.id}",
                node_id=node.id
            ))
        else:
            seen_ids.add(anchor.id)

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }
