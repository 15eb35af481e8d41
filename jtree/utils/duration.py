"""
jtree.utils.duration - Duration formatting and parsing.

Durations are handled as integer microseconds, the unit Jaeger reports.

Functions:
    format_duration: Render microseconds as us / ms / s
    parse_duration: Parse a human duration string such as "100ms" or "1m30s"
"""

from __future__ import annotations

import re
from decimal import ROUND_CEILING, Decimal
from typing import Dict

# Nanoseconds per unit
_UNITS: Dict[str, int] = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def format_duration(us: int) -> str:
    """Format a microsecond count for display.

    Below one millisecond the integer microsecond count is shown; below
    one second milliseconds with two decimals; seconds with two decimals
    otherwise.

    Example:
        >>> format_duration(999)
        '999us'
        >>> format_duration(999999)
        '1000.00ms'
        >>> format_duration(1000000)
        '1.00s'
    """
    if us < 1000:
        return f"{us}us"
    if us < 1_000_000:
        return f"{us / 1000:.2f}ms"
    return f"{us / 1_000_000:.2f}s"


def parse_duration(text: str) -> int:
    """Parse a duration string into microseconds.

    Accepts a sequence of decimal numbers each followed by a unit
    (``ns``, ``us``/``µs``, ``ms``, ``s``, ``m``, ``h``), e.g. ``"300ms"``,
    ``"1.5s"`` or ``"2h45m"``. A bare ``"0"`` is allowed. A remainder
    below one microsecond rounds up, so ``"1500ns"`` keeps a 1us span out.

    Args:
        text: The duration string

    Returns:
        Duration in microseconds

    Raises:
        ValueError: If the string is malformed or negative
    """
    value = text.strip()
    if value.startswith("+"):
        value = value[1:]
    elif value.startswith("-"):
        if value[1:] in ("0", ""):
            value = value[1:]
        else:
            raise ValueError(f"duration cannot be negative: {text!r}")

    if value == "0":
        return 0
    if not value:
        raise ValueError(f"invalid duration: {text!r}")

    total_ns = Decimal(0)
    pos = 0
    while pos < len(value):
        match = _COMPONENT.match(value, pos)
        if match is None:
            raise ValueError(f"invalid duration: {text!r}")
        number, unit = match.groups()
        total_ns += Decimal(number) * _UNITS[unit]
        pos = match.end()

    return int((total_ns / 1000).to_integral_value(rounding=ROUND_CEILING))
