"""
webcall/utils/settings.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single source of truth* for runtime configuration
of the webcall example service.

It is responsible for:
- Defining all supported configuration fields (via Pydantic BaseSettings)
- Loading default values from parameters/parameters.yaml
- Overriding defaults with environment variables (WEBCALL_*)
- Validating required settings (profile, port range, URLs)
- Logging every loaded value, with secrets masked
- Exposing a cached, fully-validated Settings object to the application

LOAD & PRECEDENCE MODEL
-----------------------
Configuration is loaded in the following order (last wins):

1) YAML defaults from:
       parameters/parameters.yaml
2) Environment variables:
       WEBCALL_*

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- HTTP calls
- Logging setup (see logging_setup.py)
- Request handling

DESIGN INTENT
-------------
- Any invalid or missing required setting fails fast at startup
- Values whose name looks like a secret are never logged in clear text
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import AnyHttpUrl, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

PARAMETERS_PATH = Path(__file__).resolve().parents[2] / "parameters" / "parameters.yaml"

SECRET_MARKERS = ("pwd", "password", "secret", "token")
MASK = "***"


class Settings(BaseSettings):
    """
    Runtime settings for the webcall example service.

    Load order / precedence:
        1) YAML defaults (parameters/parameters.yaml)
        2) Environment variables (WEBCALL_*), overriding YAML
    """

    model_config = SettingsConfigDict(
        env_prefix="WEBCALL_",
        extra="ignore",
    )

    # Service metadata
    service_name: str = "webcall-example"
    profile: str = ""
    log_level: str = "INFO"

    # HTTP server
    port: int = Field(default=8080, ge=1, le=65535)

    # Outbound calls
    # - http_timeout_seconds: applied by the shared SessionTransport
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    # Service discovery
    consul_address: Optional[AnyHttpUrl] = None
    consul_token: Optional[str] = None


def mask_value(name: str, value: Any) -> Any:
    """Return MASK for secret-looking names, the value otherwise."""
    lowered = name.lower()
    if value is not None and any(marker in lowered for marker in SECRET_MARKERS):
        return MASK
    return value


@lru_cache(maxsize=1)
def _load_yaml_parameters() -> Dict[str, Any]:
    """
    Load base configuration from parameters/parameters.yaml.

    Cached to guarantee consistent config during process lifetime.
    """
    if not PARAMETERS_PATH.exists():
        logger.warning("parameters_yaml_missing", expected=str(PARAMETERS_PATH))
        return {}

    try:
        with PARAMETERS_PATH.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning(
                "parameters_yaml_not_dict",
                path=str(PARAMETERS_PATH),
                type=type(data).__name__,
            )
            return {}
        logger.info("parameters_yaml_loaded", path=str(PARAMETERS_PATH))
        return data
    except (OSError, yaml.YAMLError) as exc:
        logger.error("parameters_yaml_load_error", path=str(PARAMETERS_PATH), error=str(exc))
        return {}


def build_settings(yaml_data: Dict[str, Any]) -> Settings:
    """
    Merge YAML defaults with environment overrides and validate.

    Raises:
        RuntimeError: on any invalid or missing required value.
    """
    try:
        env_data = Settings().model_dump(exclude_unset=True)
    except ValidationError as exc:
        logger.error("settings_env_validation_error", errors=exc.errors())
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc

    merged: Dict[str, Any] = {**yaml_data, **env_data}

    if not str(merged.get("profile") or "").strip():
        logger.error("settings_missing_profile", yaml_path=str(PARAMETERS_PATH))
        raise RuntimeError(
            "Missing required setting: profile. "
            f"Set WEBCALL_PROFILE or 'profile' in {PARAMETERS_PATH}."
        )

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as exc:
        logger.error("settings_validation_error", errors=exc.errors())
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    for name, value in settings.model_dump().items():
        logger.info("config", name=name, value=mask_value(name, value))

    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Construct and return the final validated Settings object.

    Cached (singleton per process). Any code needing configuration
    should call this function, not instantiate Settings() directly.
    """
    return build_settings(_load_yaml_parameters())
