"""Configuration schema for a dashboard session."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from typing import Any

import voluptuous as vol

from .const import (
    API_BASE,
    DEFAULT_NOTIFICATION_LIFETIME,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    ENV_PREFIX,
    MIN_REFRESH_INTERVAL,
)

CONF_API_BASE = "api_base"
CONF_NAMESPACE = "namespace"
CONF_REFRESH_INTERVAL = "refresh_interval"
CONF_NOTIFICATION_LIFETIME = "notification_lifetime"
CONF_REQUEST_TIMEOUT = "request_timeout"
CONF_SUBMIT_TIMEOUT = "submit_timeout"


def _blank_to_none(value: Any) -> str | None:
    """Return a stripped string, or ``None`` for empty values."""

    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_seconds(value: Any) -> float | None:
    """Coerce ``value`` into positive seconds, treating blanks as ``None``."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError) as err:
        raise vol.Invalid(f"expected seconds, got {value!r}") from err
    if seconds <= 0:
        raise vol.Invalid("seconds must be positive")
    return seconds


CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_API_BASE, default=API_BASE): vol.All(
            str, vol.Strip, vol.Length(min=1)
        ),
        vol.Optional(CONF_NAMESPACE, default=None): _blank_to_none,
        vol.Optional(CONF_REFRESH_INTERVAL, default=DEFAULT_REFRESH_INTERVAL): vol.All(
            vol.Coerce(int), vol.Range(min=MIN_REFRESH_INTERVAL)
        ),
        vol.Optional(
            CONF_NOTIFICATION_LIFETIME, default=DEFAULT_NOTIFICATION_LIFETIME
        ): _optional_seconds,
        vol.Optional(CONF_REQUEST_TIMEOUT, default=DEFAULT_REQUEST_TIMEOUT): vol.All(
            vol.Coerce(float), vol.Range(min=1)
        ),
        vol.Optional(CONF_SUBMIT_TIMEOUT, default=None): _optional_seconds,
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True, slots=True)
class FleetConfig:
    """Validated settings for a dashboard session."""

    api_base: str = API_BASE
    namespace: str | None = None
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL
    notification_lifetime: float | None = DEFAULT_NOTIFICATION_LIFETIME
    request_timeout: float = float(DEFAULT_REQUEST_TIMEOUT)
    submit_timeout: float | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None = None) -> FleetConfig:
        """Validate ``data`` and return a config; raises ``vol.Invalid``."""

        validated = CONFIG_SCHEMA(dict(data or {}))
        return cls(
            api_base=validated[CONF_API_BASE].rstrip("/"),
            namespace=validated[CONF_NAMESPACE],
            refresh_interval=validated[CONF_REFRESH_INTERVAL],
            notification_lifetime=validated[CONF_NOTIFICATION_LIFETIME],
            request_timeout=validated[CONF_REQUEST_TIMEOUT],
            submit_timeout=validated[CONF_SUBMIT_TIMEOUT],
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> FleetConfig:
        """Build a config from ``FIRMWARE_FLEET_*`` environment variables."""

        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for key in (
            CONF_API_BASE,
            CONF_NAMESPACE,
            CONF_REFRESH_INTERVAL,
            CONF_NOTIFICATION_LIFETIME,
            CONF_REQUEST_TIMEOUT,
            CONF_SUBMIT_TIMEOUT,
        ):
            value = env.get(f"{ENV_PREFIX}{key.upper()}")
            if value is not None:
                data[key] = value
        return cls.from_mapping(data)
