"""
webcall/utils/logging_setup.py

Process-wide structlog configuration.

Every event carries:
- timestamp (UTC, ISO-8601)
- level
- name     (service name)
- log_env  (profile, e.g. dev / prod)

and is rendered as one JSON line on stdout.

`structlog_observer()` bridges a WebCaller observer callback to a
structlog logger, so outbound calls can be traced without the call
pipeline itself ever logging.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict

import structlog

from webcall.caller.web_caller import CallObserver


def configure_logging(service_name: str, profile: str, level: str = "INFO") -> None:
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(name=service_name, log_env=profile)


def structlog_observer(logger: Any = None) -> CallObserver:
    log = logger or structlog.get_logger("webcall.caller")

    def _observe(event: str, fields: Dict[str, Any]) -> None:
        if event == "call_failed":
            log.warning(event, **fields)
        else:
            log.debug(event, **fields)

    return _observe
