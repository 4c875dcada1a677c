"""
webcall/caller/web_caller.py

WHAT THIS FILE IS FOR
---------------------
This module provides `WebCaller`, the builder + executor for ONE outbound
HTTP call:

    WebCaller("POST", url).as_json().with_basic_auth(u, p).call(
        transport, payload={"id": 1}, output_type=dict
    )

Configuration (builder stage):
- Chained setters, each returning the same WebCaller
- Nothing raises at this stage; problems are recorded as a sticky
  deferred error and reported by call()

Execution (call):
    1) deferred error / missing method or URL -> CallError, no I/O
    2) encode payload by content kind          -> CallError(500) on failure
    3) prepare request + headers               -> CallError(500) on failure
       (includes header names or values that cannot go on the wire)
    4) transport.send()                        -> CallError(502) on failure
    5) status outside 200-299                  -> drain, CallError(status)
    6) decode into output_type                 -> CallError(500) on failure

HEADER ORDER
------------
Applied in this order, so a later one replaces an earlier one with the
same (case-insensitive) name:
    a) Content-Type  (payload present and content kind set)
    b) Accept        (output_type present and content kind set)
    c) Authorization (basic auth, either credential non-empty)
    d) with_header() pairs, in attachment order

RESPONSE BODY RULES
-------------------
- Every response obtained from the transport is closed exactly once
- Failure responses are drained and discarded, never exposed
- Success without output_type: drained and discarded

WHAT THIS FILE IS NOT FOR
-------------------------
- Retries, circuit breaking, streaming bodies
- Timeouts, TLS, redirects, pooling (transport concerns)
- Logging (use with_observer() to receive events)

A WebCaller describes one logical call. Build a fresh one per call so
headers and credentials never leak between unrelated calls.
"""

from __future__ import annotations

from contextlib import suppress
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import requests
from requests.auth import HTTPBasicAuth
from requests.utils import check_header_validity

from webcall.caller.call_error import (
    STATUS_BAD_GATEWAY,
    STATUS_INTERNAL_ERROR,
    CallError,
    ErrorCodeResponse,
)
from webcall.caller.content_kind import Codec, ContentKind, codec_for
from webcall.caller.transport import Transport, TransportResponse

CallObserver = Callable[[str, Dict[str, Any]], None]

# Failures meaning "no response was obtained".
TRANSPORT_ERRORS: Tuple[type, ...] = (requests.RequestException, httpx.HTTPError, OSError)

_MASKED_HEADERS = {"authorization", "proxy-authorization"}


class WebCaller:
    def __init__(self, method: str = "", url: str = "") -> None:
        self.method = method
        self.url = url
        self._content_kind = ContentKind.NONE
        self._user = ""
        self._password = ""
        self._headers: List[Tuple[str, str]] = []
        self._deferred: Optional[Exception] = None
        self._observer: Optional[CallObserver] = None

    # ------------------------------------------------------------------ #
    # Builder
    # ------------------------------------------------------------------ #
    def with_method_and_url(self, method: str, url: str) -> "WebCaller":
        self.method = method
        self.url = url
        return self

    def with_header(self, name: str, value: str) -> "WebCaller":
        if not name:
            self._defer(ValueError(f"header name is empty; value={value}"))
            return self
        self._headers.append((name, value))
        return self

    def as_json(self) -> "WebCaller":
        self._content_kind = ContentKind.JSON
        return self

    def as_xml(self) -> "WebCaller":
        self._content_kind = ContentKind.XML
        return self

    def with_basic_auth(self, user: str, password: str) -> "WebCaller":
        self._user = user or ""
        self._password = password or ""
        return self

    def with_observer(self, observer: Optional[CallObserver]) -> "WebCaller":
        self._observer = observer
        return self

    @property
    def content_kind(self) -> ContentKind:
        return self._content_kind

    @property
    def headers(self) -> List[Tuple[str, str]]:
        return list(self._headers)

    def _defer(self, cause: Exception) -> None:
        # First recorded problem wins.
        if self._deferred is None:
            self._deferred = cause

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def call(
        self,
        transport: Transport,
        payload: Any = None,
        output_type: Any = None,
    ) -> Any:
        """
        Perform the call and return the decoded body (or None).

        Args:
            transport:   anything with send(PreparedRequest) -> response
            payload:     value to encode as the request body (optional)
            output_type: type to decode the response body into (optional)

        Returns:
            The decoded value when output_type is given and the content
            kind is JSON or XML; otherwise None.

        Raises:
            CallError: for every failure, whatever the stage.
        """
        self._check_configured()

        codec = codec_for(self._content_kind)
        body = self._encode(codec, payload)
        request = self._prepare(
            codec,
            body,
            has_payload=payload is not None,
            wants_output=output_type is not None,
        )

        self._notify("call_dispatched", method=request.method, url=self.url)
        try:
            response = transport.send(request)
        except TRANSPORT_ERRORS as exc:
            self._notify("call_failed", url=self.url, status=STATUS_BAD_GATEWAY, error=str(exc))
            raise CallError(exc, self.url, STATUS_BAD_GATEWAY) from exc

        try:
            result = self._handle_response(codec, response, output_type)
        except CallError as err:
            self._notify("call_failed", url=self.url, status=err.status, error=str(err.cause))
            raise
        finally:
            response.close()

        self._notify("call_completed", url=self.url, status=response.status_code)
        return result

    def _check_configured(self) -> None:
        if self._deferred is not None:
            raise CallError(self._deferred, self.url, STATUS_INTERNAL_ERROR) from self._deferred
        if not self.method or not self.url:
            cause = ValueError(f"missing method or url; method={self.method!r}; url={self.url!r}")
            raise CallError(cause, self.url, STATUS_INTERNAL_ERROR) from cause

    def _encode(self, codec: Optional[Codec], payload: Any) -> bytes:
        if payload is None:
            return b""
        if codec is None:
            # No content kind declared: the payload is dropped, never guessed.
            self._notify("call_input_dropped", url=self.url)
            return b""
        try:
            return codec.encode(payload)
        except Exception as exc:  # noqa: BLE001
            raise CallError(exc, self.url, STATUS_INTERNAL_ERROR) from exc

    def _prepare(
        self,
        codec: Optional[Codec],
        body: bytes,
        *,
        has_payload: bool,
        wants_output: bool,
    ) -> requests.PreparedRequest:
        try:
            request = requests.Request(method=self.method, url=self.url, data=body).prepare()

            if codec is not None and has_payload:
                request.headers["Content-Type"] = codec.media_type
            if codec is not None and wants_output:
                request.headers["Accept"] = codec.media_type
            if self._user or self._password:
                # Bytes keep non-latin-1 credentials intact (RFC 7617 UTF-8).
                HTTPBasicAuth(self._user.encode("utf-8"), self._password.encode("utf-8"))(request)

            # request.headers is a CaseInsensitiveDict: last value per name wins.
            # Values must survive http.client, which writes headers as latin-1.
            for name, value in self._headers:
                check_header_validity((name, value))
                value.encode("latin-1")
                shown = "***" if name.lower() in _MASKED_HEADERS else value
                self._notify("call_header_added", header=name, value=shown)
                request.headers[name] = value
        except (requests.RequestException, ValueError) as exc:
            raise CallError(exc, self.url, STATUS_INTERNAL_ERROR) from exc
        return request

    def _handle_response(
        self,
        codec: Optional[Codec],
        response: TransportResponse,
        output_type: Any,
    ) -> Any:
        status = int(response.status_code)
        if status < 200 or status > 299:
            _drain(response)
            raise CallError(ErrorCodeResponse(), self.url, status)

        if output_type is None or codec is None:
            _drain(response)
            return None

        try:
            return codec.decode(response.content, output_type)
        except Exception as exc:  # noqa: BLE001
            raise CallError(exc, self.url, STATUS_INTERNAL_ERROR) from exc

    def _notify(self, event: str, **fields: Any) -> None:
        if self._observer is not None:
            self._observer(event, fields)


def execute(
    transport: Transport,
    caller: WebCaller,
    payload: Any = None,
    output_type: Any = None,
) -> Any:
    """Functional form of WebCaller.call()."""
    return caller.call(transport, payload=payload, output_type=output_type)


def _drain(response: TransportResponse) -> None:
    # Read and discard so the connection can go back to the pool; a broken
    # body does not change the outcome already decided by the status.
    with suppress(*TRANSPORT_ERRORS):
        _ = response.content
