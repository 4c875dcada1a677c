"""
webcall/consul/service_lookup.py

WHAT THIS FILE IS FOR
---------------------
Resolve service addresses from a local Consul agent.

    list_services(transport, "http://localhost:8500")
        -> {"billing": ServiceAddress(name="billing", ip=..., port=..., ...)}

    find_service(transport, "http://localhost:8500", "billing")
        -> ServiceAddress(...)

CALL FLOW
---------
  find_service()
    → list_services()
        → WebCaller GET <consul>/v1/agent/services (JSON)

ERROR HANDLING RULES
--------------------
- Any HTTP / decode failure propagates unchanged as CallError
- A service missing from the agent raises ServiceNotFoundError

No caching and no retries: every lookup asks the agent.
"""

from __future__ import annotations

from typing import Dict, Optional

import structlog

from schemas.consul_schema import ConsulAgentService, ServiceAddress
from webcall.caller.transport import Transport
from webcall.caller.web_caller import WebCaller
from webcall.utils.logging_setup import structlog_observer

logger = structlog.get_logger(__name__)

CONSUL_TOKEN_HEADER = "X-Consul-Token"


class ServiceNotFoundError(LookupError):
    def __init__(self, service_name: str, consul_address: str):
        self.service_name = service_name
        self.consul_address = consul_address
        super().__init__(f"service not in consul; service={service_name}; consul={consul_address}")


def list_services(
    transport: Transport,
    consul_address: str,
    token: Optional[str] = None,
) -> Dict[str, ServiceAddress]:
    """
    Return every service registered on the agent, keyed by service name.

    When several instances share a name, the last one listed wins.
    """
    url = f"{str(consul_address).rstrip('/')}/v1/agent/services"

    caller = WebCaller("GET", url).as_json().with_observer(structlog_observer(logger))
    if token:
        caller.with_header(CONSUL_TOKEN_HEADER, token)

    agent_services = caller.call(transport, output_type=Dict[str, ConsulAgentService])

    services: Dict[str, ServiceAddress] = {}
    for svc in agent_services.values():
        services[svc.service] = ServiceAddress.from_agent_service(svc)

    logger.info("consul_services_listed", url=url, count=len(services))
    return services


def find_service(
    transport: Transport,
    consul_address: str,
    service_name: str,
    token: Optional[str] = None,
) -> ServiceAddress:
    services = list_services(transport, consul_address, token=token)
    svc = services.get(service_name)
    if svc is None:
        raise ServiceNotFoundError(service_name, str(consul_address))
    return svc
