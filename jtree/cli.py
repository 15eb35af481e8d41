"""
jtree.cli - Command-line interface for jtree.

This module provides a CLI that fetches one trace from the Jaeger query
API and prints it as an indented span tree.

Usage:
    jtree [flags] <trace-id>

Examples:
    jtree abc123def456
    jtree http://localhost:16686/trace/abc123def456
    jtree --json abc123def456
    jtree --url http://jaeger:16686 abc123def456
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from jtree import __version__
from jtree.client import JaegerClient
from jtree.core.filter import FilterConfig
from jtree.core.render import RenderConfig, TreeRenderer
from jtree.core.tree import build_tree
from jtree.errors import JtreeError
from jtree.utils.duration import parse_duration
from jtree.utils.urls import DEFAULT_JAEGER_URL, parse_input

logger = logging.getLogger(__name__)

EXAMPLES = """\
Examples:
  jtree abc123def456
  jtree http://localhost:16686/trace/abc123def456
  jtree --json abc123def456
  jtree --url http://jaeger:16686 abc123def456
"""


def _duration_arg(value: str) -> int:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _depth_arg(value: str) -> int:
    depth = int(value)
    if depth < 0:
        raise argparse.ArgumentTypeError("depth cannot be negative")
    return depth


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="jtree",
        description="jtree - display Jaeger traces in a hierarchical view",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "trace",
        nargs="?",
        default=None,
        help="Trace ID, or a Jaeger UI link of the form <scheme>://<host>/trace/<trace-id>",
    )

    parser.add_argument(
        "--url",
        type=str,
        default=DEFAULT_JAEGER_URL,
        help=f"Jaeger URL (default: {DEFAULT_JAEGER_URL})",
    )

    parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Output verbose JSON with all tags",
    )

    parser.add_argument(
        "--min-duration",
        type=_duration_arg,
        default=0,
        metavar="DURATION",
        help="Only show spans with duration >= this value (e.g. 100ms, 1s)",
    )

    parser.add_argument(
        "--error",
        dest="errors_only",
        action="store_true",
        help="Only show error spans and their ancestors",
    )

    parser.add_argument(
        "--service",
        type=str,
        default="",
        help="Only show spans from this service",
    )

    parser.add_argument(
        "--depth",
        type=_depth_arg,
        default=0,
        help="Limit tree depth (0 = unlimited)",
    )

    parser.add_argument(
        "--relative",
        action="store_true",
        help="Show timestamps relative to trace start",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds (default: none)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging on stderr",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=__version__,
    )

    return parser


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr, at DEBUG level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_render_config(parsed_args: argparse.Namespace) -> RenderConfig:
    """Map parsed flags onto the render and filter settings."""
    return RenderConfig(
        json_output=parsed_args.json_output,
        relative_time=parsed_args.relative,
        filter=FilterConfig(
            min_duration=parsed_args.min_duration,
            errors_only=parsed_args.errors_only,
            service=parsed_args.service,
            max_depth=parsed_args.depth,
        ),
    )


def write_output(content: str) -> None:
    """Write rendered output to stdout; nothing is printed when empty."""
    if content:
        print(content)


def main(args: List[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for errors)
    """
    parser = build_parser()
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    if parsed_args.trace is None:
        parser.print_help(sys.stderr)
        return 1

    base_url, trace_id = parse_input(parsed_args.trace, parsed_args.url)
    logger.debug("Fetching trace %s from %s", trace_id, base_url)
    client = JaegerClient(base_url, timeout=parsed_args.timeout)

    try:
        trace = client.fetch_trace(trace_id)
    except JtreeError as e:
        print(str(e), file=sys.stderr)
        return 1

    tree = build_tree(trace)
    renderer = TreeRenderer(build_render_config(parsed_args))
    write_output(renderer.render_text(tree))
    return 0


if __name__ == "__main__":
    sys.exit(main())
