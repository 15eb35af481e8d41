"""
jtree.errors - Exceptions raised while fetching and decoding a trace.

Library code raises these; the CLI maps each one to an error message and
a non-zero exit code.
"""

from __future__ import annotations


class JtreeError(Exception):
    """Base class for all jtree errors."""


class TransportError(JtreeError):
    """The Jaeger query API could not be reached."""


class UnexpectedStatusError(JtreeError):
    """The Jaeger query API answered with a non-200 status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"jaeger returned status {status_code}")
        self.status_code = status_code


class DecodeError(JtreeError):
    """The response body was not a valid Jaeger trace document."""


class TraceNotFoundError(JtreeError):
    """The query API returned no trace for the requested identifier."""

    def __init__(self, trace_id: str) -> None:
        super().__init__(f"no trace found with ID {trace_id}")
        self.trace_id = trace_id
