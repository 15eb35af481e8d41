"""
jtree.utils - Utility functions for durations and input resolution.

This subpackage contains utility functions:
- duration: Formatting and parsing of microsecond durations
- urls: Splitting the trace argument into base URL and trace ID
"""

from jtree.utils.duration import format_duration, parse_duration
from jtree.utils.urls import DEFAULT_JAEGER_URL, parse_input

__all__ = [
    "format_duration",
    "parse_duration",
    "DEFAULT_JAEGER_URL",
    "parse_input",
]
