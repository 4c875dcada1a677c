"""
webcall/caller/call_error.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single failure shape* raised by the outbound
call pipeline (WebCaller.call).

Every stage of a call can fail:
- configuration (missing method / URL, bad header name)
- encoding the input payload
- preparing or dispatching the request
- a non-2xx response
- decoding the response body

All of them surface as one `CallError` so callers need exactly one
`except` clause. The stage is distinguishable only by the pair
(type of `cause`, `status`):

    configuration / encode / decode -> status 500 (internal error)
    transport                      -> status 502 (bad gateway)
    protocol (non-2xx)             -> status = actual response status

WHAT THIS FILE IS NOT FOR
-------------------------
- Logging (the caller decides what to log)
- Retry decisions
- Exposing response bodies of failed calls
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional

# Status sentinels used when no response exists (or the response is unusable).
STATUS_INTERNAL_ERROR = int(HTTPStatus.INTERNAL_SERVER_ERROR)
STATUS_BAD_GATEWAY = int(HTTPStatus.BAD_GATEWAY)


class ErrorCodeResponse(Exception):
    """Cause attached to a CallError when the response status is outside 2xx."""

    def __init__(self, message: str = "error code response"):
        super().__init__(message)


class CallError(Exception):
    """
    Unified failure of one outbound call.

    Attributes:
        cause:  underlying exception (or None)
        url:    the URL that was attempted, always set
        status: HTTP-status-like integer (see module docstring)
    """

    def __init__(self, cause: Optional[BaseException], url: str, status: int):
        self.cause = cause
        self.url = url
        self.status = int(status)
        super().__init__(self._render())

    def _render(self) -> str:
        msg = str(self.cause) if self.cause is not None else "cause is nil"
        return f"error calling url; url={self.url}; status={self.status}; msg={msg}"

    def __str__(self) -> str:
        return self._render()

    def __repr__(self) -> str:
        return f"CallError(url={self.url!r}, status={self.status}, cause={self.cause!r})"
