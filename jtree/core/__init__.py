"""
jtree.core - Core modules for trace parsing, tree building, filtering and rendering.

This subpackage contains the main functionality:
- parser: Span, Trace and related dataclasses, JaegerParser for query API responses
- tree: SpanNode forest construction sorted by start time
- filter: FilterConfig and the visibility predicates
- render: TreeRenderer for text and JSON output
"""

from jtree.core.parser import JaegerParser, Process, Reference, Span, Tag, Trace
from jtree.core.tree import SpanNode, SpanTree, build_tree
from jtree.core.filter import (
    FilterConfig,
    has_error,
    matches_filter,
    matches_self,
    visible_nodes,
)
from jtree.core.render import RenderConfig, TreeRenderer

__all__ = [
    "JaegerParser",
    "Process",
    "Reference",
    "Span",
    "Tag",
    "Trace",
    "SpanNode",
    "SpanTree",
    "build_tree",
    "FilterConfig",
    "has_error",
    "matches_filter",
    "matches_self",
    "visible_nodes",
    "RenderConfig",
    "TreeRenderer",
]
