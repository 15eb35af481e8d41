"""
jtree.client - Jaeger query API client.

Fetches a single trace with one GET request. There are no retries; every
failure is raised as a jtree.errors exception.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import requests

from jtree.core.parser import JaegerParser, Trace
from jtree.errors import DecodeError, TransportError, UnexpectedStatusError
from jtree.utils.urls import DEFAULT_JAEGER_URL

logger = logging.getLogger(__name__)


class JaegerClient:
    """Client for the Jaeger query API.

    Example:
        >>> client = JaegerClient("http://jaeger:16686")
        >>> trace = client.fetch_trace("abc123def456")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_JAEGER_URL,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._parser = JaegerParser()

    def trace_url(self, trace_id: str) -> str:
        """URL of the trace endpoint for an identifier."""
        return f"{self.base_url}/api/traces/{trace_id}"

    def fetch_trace(self, trace_id: str) -> Trace:
        """Fetch and parse one trace.

        Args:
            trace_id: Identifier of the trace

        Returns:
            The parsed Trace

        Raises:
            TransportError: If the request could not be made
            UnexpectedStatusError: If the API did not answer 200
            DecodeError: If the body is not a valid trace document
            TraceNotFoundError: If the API returned no trace
        """
        url = self.trace_url(trace_id)
        logger.debug("GET %s", url)

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"failed to fetch trace: {e}") from e

        logger.debug("Jaeger answered %d", response.status_code)
        if response.status_code != requests.codes.ok:
            raise UnexpectedStatusError(response.status_code)

        try:
            return self._parser.parse_json(response.text, trace_id)
        except (json.JSONDecodeError, ValueError) as e:
            raise DecodeError(f"failed to decode response: {e}") from e
