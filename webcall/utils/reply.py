"""
webcall/utils/reply.py

JSON reply helpers for HTTP handlers.

- reply_json(data):       indented JSON body
- reply_raw_json(raw):    already-encoded JSON body
- reply_error(err, code): plain-text error body, root cause logged

All JSON replies use "application/json; charset=UTF-8".
"""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any, Union

import structlog
from fastapi.responses import PlainTextResponse, Response
from pydantic_core import PydanticSerializationError, to_jsonable_python

logger = structlog.get_logger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=UTF-8"


class ReplyError(Exception):
    """Raised when a reply body cannot be produced."""

    def __init__(self, message: str, status_code: int = int(HTTPStatus.INTERNAL_SERVER_ERROR)):
        self.status_code = status_code
        super().__init__(message)


def reply_json(data: Any) -> Response:
    try:
        raw = json.dumps(to_jsonable_python(data, by_alias=True), indent=1)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        logger.error("reply_json_failed", error=str(exc))
        raise ReplyError("failed marshal json") from exc
    return reply_raw_json(raw)


def reply_raw_json(raw: Union[bytes, str]) -> Response:
    content = raw.encode("utf-8") if isinstance(raw, str) else raw
    return Response(
        content=content,
        status_code=int(HTTPStatus.OK),
        media_type=JSON_CONTENT_TYPE,
    )


def root_cause(err: BaseException) -> BaseException:
    """Follow the explicit `raise ... from` chain down to the first exception."""
    while err.__cause__ is not None:
        err = err.__cause__
    return err


def reply_error(err: BaseException, status_code: int) -> PlainTextResponse:
    logger.info("ws_error", error=str(root_cause(err)), status_code=status_code)
    return PlainTextResponse(content=str(err) + "\n", status_code=status_code)
