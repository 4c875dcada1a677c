from __future__ import annotations

from typing import Any, Mapping, Protocol

from requests import PreparedRequest


class TransportResponse(Protocol):
    """
    Response surface the executor relies on.

    `requests.Response` satisfies it as-is. Reading `content` consumes the
    whole body; `close()` releases the underlying connection.
    """

    status_code: int
    headers: Mapping[str, Any]

    @property
    def content(self) -> bytes:
        ...

    def close(self) -> None:
        ...


class Transport(Protocol):
    """
    Network-sending capability supplied by the caller.

    Timeouts, redirects, TLS and connection pooling are configured on the
    transport, never by WebCaller. Transport-level failures are raised
    (requests.RequestException, httpx.HTTPError or OSError).
    """

    def send(self, request: PreparedRequest) -> TransportResponse:
        ...
