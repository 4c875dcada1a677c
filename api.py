"""
api.py

WHAT THIS FILE IS FOR
---------------------
This module defines the FastAPI application entrypoint for the webcall
example service: a small HTTP service embedding the WebCaller.

It is responsible for:
- Loading settings and configuring logging at startup
- Holding the single, process-wide pooled transport (SessionTransport)
- Registering exception handlers that turn:
    - CallError            -> plain-text error (downstream status or 502)
    - ServiceNotFoundError -> 404
    - ReplyError           -> its own status (500)
- Exposing HTTP endpoints:
    - GET /healthcheck and /health
    - GET /api/v1/services            (all services known to Consul)
    - GET /api/v1/services/{name}     (one service address)

SHUTDOWN
--------
`run()` serves with uvicorn, which handles SIGINT / SIGTERM and drains
in-flight requests. The lifespan hook closes the shared transport.

DESIGN INTENT
-------------
This file contains ONLY the HTTP layer. Outbound call logic lives in
webcall/caller/*, service discovery in webcall/consul/*.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from http import HTTPStatus

import structlog
import uvicorn
from fastapi import FastAPI, Request

from webcall.caller.call_error import STATUS_BAD_GATEWAY, CallError, ErrorCodeResponse
from webcall.consul.service_lookup import ServiceNotFoundError, find_service, list_services
from webcall.utils.http_client import SessionTransport
from webcall.utils.logging_setup import configure_logging
from webcall.utils.reply import ReplyError, reply_error, reply_json
from webcall.utils.settings import get_settings

settings = get_settings()
configure_logging(settings.service_name, settings.profile, settings.log_level)

logger = structlog.get_logger(__name__)

transport = SessionTransport(timeout_seconds=settings.http_timeout_seconds)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("service_started", port=settings.port)
    yield
    logger.info("got_kill_signal")
    transport.close()
    logger.info("bye")


app = FastAPI(
    title="webcall example service",
    version="1.0.0",
    description="Example service embedding the WebCaller outbound HTTP component.",
    lifespan=lifespan,
)


class ConsulNotConfiguredError(RuntimeError):
    pass


def _consul_address() -> str:
    if not settings.consul_address:
        raise ConsulNotConfiguredError("consul_address is not configured")
    return str(settings.consul_address)


# -------------------------------------------------------------------
# Exception handlers
# -------------------------------------------------------------------
@app.exception_handler(CallError)
async def call_error_handler(request: Request, exc: CallError):
    # Protocol errors keep the downstream status; anything else means the
    # downstream could not be used at all.
    status = exc.status if isinstance(exc.cause, ErrorCodeResponse) else STATUS_BAD_GATEWAY
    logger.warning("downstream_call_failed", path=request.url.path, url=exc.url, status=exc.status)
    return reply_error(exc, status)


@app.exception_handler(ServiceNotFoundError)
async def service_not_found_handler(request: Request, exc: ServiceNotFoundError):
    return reply_error(exc, int(HTTPStatus.NOT_FOUND))


@app.exception_handler(ConsulNotConfiguredError)
async def consul_not_configured_handler(request: Request, exc: ConsulNotConfiguredError):
    return reply_error(exc, int(HTTPStatus.SERVICE_UNAVAILABLE))


@app.exception_handler(ReplyError)
async def reply_error_handler(request: Request, exc: ReplyError):
    return reply_error(exc, exc.status_code)


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------
@app.get("/healthcheck")
@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": settings.service_name,
        "profile": settings.profile,
    }


@app.get("/api/v1/services")
def get_services():
    services = list_services(transport, _consul_address(), token=settings.consul_token)
    return reply_json(services)


@app.get("/api/v1/services/{name}")
def get_service(name: str):
    svc = find_service(transport, _consul_address(), name, token=settings.consul_token)
    return reply_json(svc)


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
