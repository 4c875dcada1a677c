"""
webcall/utils/http_client.py

WHAT THIS FILE IS FOR
---------------------
This module provides the concrete transports a WebCaller sends through.

- SessionTransport:
    * requests.Session (connection-pooled, long-lived)
    * stream=True so the caller decides when the body is read
    * Standard timeout handling

- HttpxTransport:
    * httpx.Client adapter exposing the same surface
    * For services already holding an httpx client

Both are *transport-only*. They do not:
- Retry
- Log
- Interpret status codes or payloads

Those belong to WebCaller (classification) and to the embedding
application (logging, retry policy).

TIMEOUT SEMANTICS
-----------------
Timeout can be:
- single float -> applied to both connect + read
- (connect_timeout, read_timeout)

Cancellation of a call is entirely delegated to these timeouts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

import httpx
import requests

TimeoutType = Union[float, Tuple[float, float]]


@dataclass
class SessionTransport:
    """
    Pooled requests-based transport.

    One instance is meant to be created at startup and shared by every
    WebCaller of the process; the Session keeps the connection pool.
    """

    timeout_seconds: TimeoutType = 10.0
    session: requests.Session = field(default_factory=requests.Session)

    def send(self, request: requests.PreparedRequest) -> requests.Response:
        """
        Send a prepared request.

        Raises:
            requests.RequestException:
                Any network-level error (timeout, DNS, connection error).
        """
        return self.session.send(request, stream=True, timeout=self.timeout_seconds)

    def close(self) -> None:
        self.session.close()


class _HttpxResponse:
    """Wrap httpx.Response to the `content` / `close()` surface."""

    def __init__(self, response: httpx.Response):
        self._response = response
        self.status_code = response.status_code
        self.headers: Mapping[str, Any] = response.headers

    @property
    def content(self) -> bytes:
        return self._response.read()

    def close(self) -> None:
        self._response.close()


@dataclass
class HttpxTransport:
    client: httpx.Client
    timeout_seconds: Optional[TimeoutType] = None

    def send(self, request: requests.PreparedRequest) -> _HttpxResponse:
        body = request.body or b""
        if isinstance(body, str):
            body = body.encode("utf-8")

        outbound = self.client.build_request(
            request.method or "GET",
            request.url or "",
            headers=dict(request.headers),
            content=body,
            timeout=self._timeout_arg(),
        )
        return _HttpxResponse(self.client.send(outbound, stream=True))

    def _timeout_arg(self) -> Any:
        # None falls back to the client's own timeout configuration.
        if self.timeout_seconds is None:
            return httpx.USE_CLIENT_DEFAULT
        if isinstance(self.timeout_seconds, tuple):
            connect, read = self.timeout_seconds
            return httpx.Timeout(read, connect=connect)
        return httpx.Timeout(self.timeout_seconds)
