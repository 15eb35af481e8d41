"""
jtree - display Jaeger traces in a hierarchical view.

This package fetches a single trace from the Jaeger query API, builds a
span tree from its CHILD_OF references, and renders it as indented text
or JSON, optionally filtered by duration, errors, service and depth.

Example:
    >>> from jtree import JaegerClient, build_tree, TreeRenderer
    >>> trace = JaegerClient("http://localhost:16686").fetch_trace("abc123")
    >>> print(TreeRenderer().render_text(build_tree(trace)))
"""

__version__ = "0.1.0"
__author__ = "KR"
__email__ = "Karthickrajam18@gmail.com"

from jtree.core.parser import JaegerParser, Span, Trace
from jtree.core.tree import SpanNode, SpanTree, build_tree
from jtree.core.filter import FilterConfig
from jtree.core.render import RenderConfig, TreeRenderer
from jtree.client import JaegerClient

__all__ = [
    "JaegerParser",
    "Span",
    "Trace",
    "SpanNode",
    "SpanTree",
    "build_tree",
    "FilterConfig",
    "RenderConfig",
    "TreeRenderer",
    "JaegerClient",
]
