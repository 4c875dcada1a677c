# -------------------------------------------------------------------
# schemas/consul_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# Typed shapes for the Consul service lookup:
#
# - ConsulAgentService: one entry of GET /v1/agent/services, as Consul
#   returns it (PascalCase keys; unknown keys ignored).
# - ServiceAddress: the resolved address handed to callers and
#   returned by the example API.
#
# Consul field names are mapped via aliases so Python code stays
# snake_case while the wire format stays exactly what Consul sends.
# -------------------------------------------------------------------

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ConsulAgentService(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    service: str = Field(..., alias="Service")
    address: str = Field(default="", alias="Address")
    port: int = Field(default=0, alias="Port")


class ServiceAddress(BaseModel):
    """
    Resolved service location.

    `location` is "<ip>:<port>", ready to be used as a URL authority.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., alias="Name")
    ip: str = Field(..., alias="IP")
    port: int = Field(..., alias="Port")
    location: str = Field(..., alias="Location")

    @classmethod
    def from_agent_service(cls, svc: ConsulAgentService) -> "ServiceAddress":
        return cls(
            name=svc.service,
            ip=svc.address,
            port=svc.port,
            location=f"{svc.address}:{svc.port}",
        )
