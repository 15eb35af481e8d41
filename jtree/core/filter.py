"""
jtree.core.filter - Span visibility predicates.

A node is visible when it matches every active predicate itself, or when
any of its descendants does. Ancestors of a matching span are therefore
always shown, even if they fail the predicates on their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Set

from jtree.core.parser import Span
from jtree.core.tree import SpanNode

STATUS_CODE_TAG = "otel.status_code"
ERROR_TAG = "error"
ERROR_STATUS = "ERROR"


@dataclass(frozen=True)
class FilterConfig:
    """Filter settings.

    Attributes:
        min_duration: Minimum span duration in microseconds (0 disables)
        errors_only: Only keep spans carrying an error marker
        service: Only keep spans of this service ("" disables)
        max_depth: Depth cutoff applied while rendering (0 = unlimited)
    """
    min_duration: int = 0
    errors_only: bool = False
    service: str = ""
    max_depth: int = 0

    def __post_init__(self) -> None:
        if self.min_duration < 0:
            raise ValueError("min_duration cannot be negative")
        if self.max_depth < 0:
            raise ValueError("max_depth cannot be negative")


def has_error(span: Span) -> bool:
    """Check whether a span carries an error marker.

    Either ``otel.status_code`` equal to the string ``"ERROR"``, or an
    ``error`` tag whose value is the boolean True. The string ``"true"``
    does not count.
    """
    for tag in span.tags:
        if tag.key == STATUS_CODE_TAG and tag.value == ERROR_STATUS:
            return True
        if tag.key == ERROR_TAG and tag.value is True:
            return True
    return False


def matches_self(node: SpanNode, config: FilterConfig) -> bool:
    """Check the node's own span against every active predicate."""
    if config.min_duration > 0 and node.span.duration < config.min_duration:
        return False
    if config.errors_only and not has_error(node.span):
        return False
    if config.service and node.service != config.service:
        return False
    return True


def visible_nodes(roots: List[SpanNode], config: FilterConfig) -> Set[int]:
    """Collect the ids of every node that matches itself or through a descendant.

    Nodes are evaluated bottom-up from an explicit post-order stack, so each
    node is visited once and deep traces need no recursion.
    """
    visible: Set[int] = set()
    stack = [(root, False) for root in reversed(roots)]
    while stack:
        node, expanded = stack.pop()
        if not expanded:
            stack.append((node, True))
            stack.extend((child, False) for child in node.children)
            continue
        if matches_self(node, config) or any(id(child) in visible for child in node.children):
            visible.add(id(node))
    return visible


def matches_filter(node: SpanNode, config: FilterConfig) -> bool:
    """Check whether the node or any of its descendants matches."""
    return id(node) in visible_nodes([node], config)
