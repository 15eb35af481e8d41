"""
jtree.core.parser - Jaeger trace parsing module.

This module provides dataclasses and a parser for converting the body of a
Jaeger query API response (``GET /api/traces/<trace-id>``) into internal
representations for tree building and rendering.

Classes:
    Tag: A single key/value tag attached to a span
    Reference: A typed link from one span to another
    Span: Immutable record for one span
    Process: A traced service instance
    Trace: One trace with its spans and process map
    JaegerParser: Parser for Jaeger JSON responses
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from jtree.errors import TraceNotFoundError

logger = logging.getLogger(__name__)

# Tag values keep the JSON type they arrived with.
TagValue = Union[str, bool, int, float, None]

CHILD_OF = "CHILD_OF"


@dataclass(frozen=True)
class Tag:
    """A key/value tag on a span."""
    key: str
    value: TagValue = None


@dataclass(frozen=True)
class Reference:
    """A typed reference from a span to another span.

    Attributes:
        refType: Reference kind, e.g. CHILD_OF or FOLLOWS_FROM
        spanId: Identifier of the referenced span
    """
    refType: str
    spanId: str


@dataclass(frozen=True)
class Span:
    """Represents a single span as returned by the Jaeger query API.

    Attributes:
        spanId: Unique identifier for this span
        operation: Name of the operation being traced
        references: Typed links to other spans
        startTime: Start time in microseconds since the epoch
        duration: Duration of the span in microseconds
        processId: Key into the trace's process map
        tags: Tags in the order the backend returned them
    """
    spanId: str
    operation: str = ""
    references: Tuple[Reference, ...] = ()
    startTime: int = 0
    duration: int = 0
    processId: str = ""
    tags: Tuple[Tag, ...] = ()

    def tag_map(self) -> Dict[str, TagValue]:
        """Return tags as a dict; a repeated key keeps its last value."""
        return {tag.key: tag.value for tag in self.tags}


@dataclass(frozen=True)
class Process:
    """A traced service instance."""
    serviceName: str = ""


@dataclass
class Trace:
    """Represents a complete Jaeger trace.

    Attributes:
        traceId: Unique identifier for this trace
        spans: All spans of the trace, in no particular order
        processes: Mapping from process identifier to Process
    """
    traceId: str
    spans: List[Span] = field(default_factory=list)
    processes: Dict[str, Process] = field(default_factory=dict)

    def service_for(self, process_id: str) -> str:
        """Resolve a process identifier to its service name.

        Returns an empty string when the process is unknown.
        """
        process = self.processes.get(process_id)
        if process is None:
            return ""
        return process.serviceName


class JaegerParser:
    """Parser for the Jaeger query API trace format.

    Example:
        >>> parser = JaegerParser()
        >>> trace = parser.parse_json(response_body)
        >>> print(trace.traceId, len(trace.spans))
    """

    def parse_json(self, json_str: str, trace_id: str = "") -> Trace:
        """Parse a Jaeger trace from a JSON string.

        Args:
            json_str: Response body of ``/api/traces/<trace-id>``
            trace_id: Requested identifier, used in the not-found error

        Returns:
            The first trace contained in the response

        Raises:
            json.JSONDecodeError: If JSON is invalid
            ValueError: If the document is not shaped like a Jaeger response
            TraceNotFoundError: If the response holds no trace
        """
        data = json.loads(json_str)
        return self.parse_response(data, trace_id)

    def parse_response(self, data: Any, trace_id: str = "") -> Trace:
        """Parse a Jaeger trace from an already decoded response.

        Only the first element of ``data`` is used.
        """
        if not isinstance(data, dict):
            raise ValueError("response is not a JSON object")

        traces = data.get("data")
        if traces is None:
            traces = []
        if not isinstance(traces, list):
            raise ValueError("'data' is not a list")
        if not traces:
            raise TraceNotFoundError(trace_id)

        if len(traces) > 1:
            logger.debug("Response holds %d traces, using the first", len(traces))

        return self._parse_trace(traces[0])

    def _parse_trace(self, raw_trace: Any) -> Trace:
        if not isinstance(raw_trace, dict):
            raise ValueError("trace is not a JSON object")

        raw_processes = raw_trace.get("processes") or {}
        if not isinstance(raw_processes, dict):
            raise ValueError("'processes' is not a JSON object")
        processes = {
            process_id: Process(
                serviceName=_as_str(raw.get("serviceName")) if isinstance(raw, dict) else ""
            )
            for process_id, raw in raw_processes.items()
        }
        raw_spans = raw_trace.get("spans") or []
        if not isinstance(raw_spans, list):
            raise ValueError("'spans' is not a list")
        spans = [self._parse_span(raw) for raw in raw_spans]

        trace = Trace(
            traceId=_as_str(raw_trace.get("traceID")),
            spans=spans,
            processes=processes,
        )
        logger.debug(
            "Parsed trace %s with %d spans and %d processes",
            trace.traceId, len(spans), len(processes),
        )
        return trace

    def _parse_span(self, raw_span: Any) -> Span:
        """Parse a single span dictionary into a Span object."""
        if not isinstance(raw_span, dict):
            raise ValueError("span is not a JSON object")

        references = tuple(
            Reference(
                refType=_as_str(ref.get("refType")),
                spanId=_as_str(ref.get("spanID")),
            )
            for ref in _objects(raw_span.get("references"), "reference")
        )
        tags = tuple(
            Tag(key=_as_str(tag.get("key")), value=tag.get("value"))
            for tag in _objects(raw_span.get("tags"), "tag")
        )

        return Span(
            spanId=_as_str(raw_span.get("spanID")),
            operation=_as_str(raw_span.get("operationName")),
            references=references,
            startTime=_as_int(raw_span.get("startTime"), "startTime"),
            duration=_as_int(raw_span.get("duration"), "duration"),
            processId=_as_str(raw_span.get("processID")),
            tags=tags,
        )


def _objects(values: Optional[Any], name: str) -> List[Dict[str, Any]]:
    if values is None:
        return []
    if not isinstance(values, list) or not all(isinstance(v, dict) for v in values):
        raise ValueError(f"{name} list must contain JSON objects")
    return values


def _as_str(value: Optional[Any]) -> str:
    if value is None:
        return ""
    return str(value)


def _as_int(value: Optional[Any], name: str) -> int:
    if value is None:
        return 0
    # bool is an int subclass but never a valid timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return int(value)
