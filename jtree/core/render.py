"""
jtree.core.render - Text and JSON rendering of span trees.

This module walks a SpanTree depth first and produces one output line per
visible span, indented two spaces per level.

Classes:
    RenderConfig: Output settings
    TreeRenderer: Renders a SpanTree into lines
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional

from jtree.core.filter import FilterConfig, visible_nodes
from jtree.core.tree import SpanNode, SpanTree
from jtree.utils.duration import format_duration

logger = logging.getLogger(__name__)

INDENT = "  "

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class RenderConfig:
    """Output settings.

    Attributes:
        json_output: Emit a JSON record with all tags per span
        relative_time: Show start times as offsets from the trace start
        tz: Time zone for wall clock timestamps (None = local time)
        filter: Visibility and depth settings
    """
    json_output: bool = False
    relative_time: bool = False
    tz: Optional[tzinfo] = None
    filter: FilterConfig = field(default_factory=FilterConfig)


def format_timestamp(us: int, tz: Optional[tzinfo] = None) -> str:
    """Format microseconds since the epoch as ``HH:MM:SS.mmm``."""
    moment = (_EPOCH + timedelta(microseconds=us)).astimezone(tz)
    return f"{moment:%H:%M:%S}.{moment.microsecond // 1000:03d}"


class TreeRenderer:
    """Renders a span tree as indented lines.

    Example:
        >>> renderer = TreeRenderer(RenderConfig(relative_time=True))
        >>> print(renderer.render_text(build_tree(trace)))
        HTTP GET /orders [frontend] +0us 12.40ms
          SELECT orders [postgres] +1.10ms 3.05ms
    """

    def __init__(self, config: Optional[RenderConfig] = None) -> None:
        self.config = config or RenderConfig()

    def render(self, tree: SpanTree) -> List[str]:
        """Render every visible node of the tree, one line each.

        Nodes are walked pre-order from an explicit stack of (node, depth)
        entries. A node outside the depth limit is skipped with its subtree.
        """
        cfg = self.config.filter
        visible = visible_nodes(tree.roots, cfg)

        lines: List[str] = []
        stack = [(root, 0) for root in reversed(tree.roots)]
        while stack:
            node, depth = stack.pop()
            if id(node) not in visible:
                continue
            if cfg.max_depth > 0 and depth >= cfg.max_depth:
                continue
            lines.append(self.format_line(node, depth, tree.startTime))
            stack.extend((child, depth + 1) for child in reversed(node.children))

        logger.debug("Rendered %d lines", len(lines))
        return lines

    def render_text(self, tree: SpanTree) -> str:
        """Render the tree as a single newline separated string."""
        return "\n".join(self.render(tree))

    def format_line(self, node: SpanNode, depth: int, start_time: int) -> str:
        """Format a single node at the given depth."""
        indent = INDENT * depth
        duration = format_duration(node.span.duration)

        if self.config.json_output:
            record = json.dumps(
                self.span_record(node),
                sort_keys=True,
                separators=(",", ":"),
                ensure_ascii=False,
            )
            return f"{indent}{node.span.operation} {record}"

        if self.config.relative_time:
            time_str = "+" + format_duration(node.span.startTime - start_time)
        else:
            time_str = format_timestamp(node.span.startTime, self.config.tz)
        return f"{indent}{node.span.operation} [{node.service}] {time_str} {duration}"

    @staticmethod
    def span_record(node: SpanNode) -> Dict[str, Any]:
        """Build the JSON record for a node."""
        return {
            "span_id": node.span.spanId,
            "service": node.service,
            "duration": format_duration(node.span.duration),
            "tags": node.span.tag_map(),
        }
