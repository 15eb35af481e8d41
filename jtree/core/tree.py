"""
jtree.core.tree - Span tree construction.

This module turns the flat span list of a Trace into a forest of
SpanNode objects linked through CHILD_OF references, sorted by start time.

Functions:
    build_tree: Build the sorted forest and the trace start time
    get_parent_id: Resolve the parent span identifier of a span
    sort_nodes: Sort a node list by ascending start time
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from jtree.core.parser import CHILD_OF, Span, Trace

logger = logging.getLogger(__name__)


@dataclass
class SpanNode:
    """A span placed in the trace tree.

    Attributes:
        span: The wrapped span
        service: Resolved service name ("" if the process is unknown)
        children: Child nodes, sorted by start time once the tree is built
    """
    span: Span
    service: str = ""
    children: List[SpanNode] = field(default_factory=list)

    @property
    def spanId(self) -> str:
        return self.span.spanId


@dataclass
class SpanTree:
    """The forest of root nodes built from one trace.

    Attributes:
        roots: Root nodes sorted by start time
        startTime: Earliest start time among all spans, 0 if there are none
    """
    roots: List[SpanNode]
    startTime: int = 0


def get_parent_id(span: Span) -> Optional[str]:
    """Get the target of the first CHILD_OF reference of a span.

    References of any other kind (e.g. FOLLOWS_FROM) never establish a
    parent. Returns None when there is no CHILD_OF reference.
    """
    for ref in span.references:
        if ref.refType == CHILD_OF:
            return ref.spanId
    return None


def sort_nodes(nodes: List[SpanNode]) -> None:
    """Sort nodes in place by ascending start time.

    The sort is stable: nodes with equal start times keep their order.
    """
    nodes.sort(key=lambda node: node.span.startTime)


def build_tree(trace: Trace) -> SpanTree:
    """Build the span forest of a trace.

    Every span becomes exactly one node. A node is attached to the node
    of its CHILD_OF parent when that parent is part of the trace, and
    becomes a root otherwise. Input order does not matter: all nodes are
    indexed before any of them is attached.

    Spans that are their own ancestor are promoted to roots so that every
    span remains reachable and traversal terminates.

    Args:
        trace: The trace to build the tree for

    Returns:
        SpanTree with sorted roots and the trace start time
    """
    nodes: List[SpanNode] = []
    node_map: Dict[str, SpanNode] = {}

    for span in trace.spans:
        node = SpanNode(span=span, service=trace.service_for(span.processId))
        nodes.append(node)
        if span.spanId in node_map:
            logger.warning("Duplicate span ID %s in trace %s", span.spanId, trace.traceId)
            continue
        node_map[span.spanId] = node

    parents = _resolve_parents(nodes, node_map)

    roots: List[SpanNode] = []
    for node in nodes:
        parent = parents.get(id(node))
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    sort_nodes(roots)
    for node in nodes:
        sort_nodes(node.children)

    start_time = min((span.startTime for span in trace.spans), default=0)

    logger.debug(
        "Built tree with %d roots from %d spans, start time %d",
        len(roots), len(nodes), start_time,
    )
    return SpanTree(roots=roots, startTime=start_time)


def _resolve_parents(
    nodes: List[SpanNode], node_map: Dict[str, SpanNode]
) -> Dict[int, SpanNode]:
    """Map each node (by object id) to its parent node.

    Nodes without a resolvable parent are left out of the result. Walking
    up from each node, a walk that comes back to a node already on the
    current path has found a cycle; the node where the cycle closes is
    detached and becomes a root.
    """
    parents: Dict[int, SpanNode] = {}
    for node in nodes:
        parent_id = get_parent_id(node.span)
        if parent_id is None:
            continue
        parent = node_map.get(parent_id)
        if parent is None:
            logger.debug(
                "Span %s references missing parent %s, promoting to root",
                node.spanId, parent_id,
            )
            continue
        parents[id(node)] = parent

    settled: Set[int] = set()
    for node in nodes:
        path: List[int] = []
        on_path: Set[int] = set()
        current: Optional[SpanNode] = node
        while current is not None and id(current) not in settled:
            if id(current) in on_path:
                logger.warning(
                    "Span %s is its own ancestor, promoting to root", current.spanId
                )
                del parents[id(current)]
                break
            path.append(id(current))
            on_path.add(id(current))
            current = parents.get(id(current))
        settled.update(path)

    return parents
