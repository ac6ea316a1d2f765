from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
import json
import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from .codecs.inventory_codec import (
    decode_dashboard,
    decode_events,
    decode_firmware_inventory,
    decode_namespaces,
    decode_schedule_response,
    decode_server_firmware,
    decode_servers,
    decode_tasks,
    decode_updates,
    encode_schedule_request,
)
from .codecs.inventory_models import (
    DashboardStats,
    HealthEvent,
    UpdateSummaryPayload,
    UpdateTask,
)
from .codecs.sanitize import redact_text, truncate
from .const import (
    API_BASE,
    DASHBOARD_PATH,
    DEFAULT_REQUEST_TIMEOUT,
    EVENTS_PATH,
    FIRMWARE_PATH,
    MODE_ON_REBOOT,
    NAMESPACES_PATH,
    NODE_FIRMWARE_PATH_FMT,
    NODES_PATH,
    SCHEDULE_PATH,
    TASKS_PATH,
    UNKNOWN_ERROR,
    UPDATES_PATH,
    USER_AGENT,
)
from .domain.inventory import FirmwareComponent, FirmwareInventory, Server

_LOGGER = logging.getLogger(__name__)

# Toggle to preview bodies in debug logs (redacted). Leave False by default.
API_LOG_PREVIEW = False


class FleetApiError(Exception):
    """Base error for inventory and scheduling service calls."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class FetchError(FleetApiError):
    """Retrieving inventory or namespaces failed."""


class RateLimitError(FetchError):
    """Server rate-limited the client (HTTP 429)."""


class ScheduleError(FleetApiError):
    """Submitting a batch schedule request failed."""


def _error_message(body_text: str | None, status: int) -> str:
    """Return a human-readable message for an HTTP error response."""

    text = (body_text or "").strip()
    if text.startswith("{"):
        # {"error": "..."} bodies from the service
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            for key in ("error", "message"):
                value = parsed.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
    if text:
        return truncate(redact_text(text))
    return f"HTTP {status}"


class InventoryClient:
    """Thin async client for the inventory and scheduling services."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        api_base: str = API_BASE,
        token: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialise the client with its HTTP session and base URL."""
        self._session = session
        self._api_base = api_base.rstrip("/") if api_base else API_BASE
        self._token = token
        self._request_timeout = request_timeout

    @property
    def api_base(self) -> str:
        return self._api_base

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        error_cls: type[FleetApiError] = FetchError,
        **kwargs: Any,
    ) -> Any | None:
        """Perform an HTTP request.

        Return JSON when possible, otherwise text. Failures raise ``error_cls``
        with a message suitable for display. Errors are logged WITHOUT secrets.
        """
        headers = kwargs.pop("headers", {})
        headers.setdefault("User-Agent", USER_AGENT)
        headers.setdefault("Accept", "application/json")
        if self._token:
            headers.setdefault("Authorization", f"Bearer {self._token}")
        timeout = kwargs.pop(
            "timeout", aiohttp.ClientTimeout(total=self._request_timeout)
        )
        query = {key: value for key, value in (params or {}).items() if value}

        url = path if path.startswith("http") else f"{self._api_base}{path}"
        _LOGGER.debug("HTTP %s %s params=%s", method, url, query or None)

        try:
            async with self._session.request(
                method,
                url,
                headers=headers,
                params=query or None,
                timeout=timeout,
                **kwargs,
            ) as resp:
                ctype = resp.headers.get("Content-Type", "")
                body_text: str | None
                try:
                    body_text = await resp.text()
                except Exception:  # noqa: BLE001 - body is informational only
                    body_text = "<no body>"

                if resp.status >= 400:
                    # Log a compact, redacted error; never the request headers.
                    _LOGGER.error(
                        "HTTP error %s %s -> %s; body=%s",
                        method,
                        url,
                        resp.status,
                        redact_text(body_text),
                    )
                elif API_LOG_PREVIEW:
                    _LOGGER.debug(
                        "HTTP %s -> %s, ctype=%s, body[0:200]=%r",
                        url,
                        resp.status,
                        ctype,
                        (redact_text(body_text) or "")[:200],
                    )
                else:
                    _LOGGER.debug("HTTP %s -> %s, ctype=%s", url, resp.status, ctype)

                if resp.status == 429 and issubclass(RateLimitError, error_cls):
                    raise RateLimitError("Rate limited", status=429)
                if resp.status >= 400:
                    raise error_cls(
                        _error_message(body_text, resp.status), status=resp.status
                    )

                # Try JSON first; fall back to text
                if "application/json" in ctype or (
                    body_text and body_text[:1] in ("{", "[")
                ):
                    try:
                        return await resp.json(content_type=None)
                    except Exception:  # noqa: BLE001 - fall back to raw text
                        return body_text
                return body_text

        except FleetApiError:
            raise
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError as err:
            _LOGGER.error("Request %s %s timed out", method, url)
            raise error_cls("Request timed out") from err
        except aiohttp.ClientError as err:
            _LOGGER.error(
                "Request %s %s failed (sanitized): %s",
                method,
                url,
                redact_text(str(err)),
            )
            raise error_cls(redact_text(str(err)) or UNKNOWN_ERROR) from err

    # ----------------- Reads -----------------

    async def async_list_servers(self, namespace: str | None = None) -> list[Server]:
        """Return the servers, optionally limited to ``namespace``."""

        data = await self._request("GET", NODES_PATH, params={"namespace": namespace})
        return decode_servers(data)

    async def async_list_firmware_inventory(
        self, namespace: str | None = None
    ) -> FirmwareInventory:
        """Return the firmware summary and per-component entries."""

        data = await self._request(
            "GET", FIRMWARE_PATH, params={"namespace": namespace}
        )
        return decode_firmware_inventory(data)

    async def async_list_namespaces(self) -> list[str]:
        """Return the namespaces that contain servers."""

        data = await self._request("GET", NAMESPACES_PATH)
        return decode_namespaces(data)

    async def async_get_server_firmware(self, name: str) -> list[FirmwareComponent]:
        """Return the firmware components of one server."""

        path = NODE_FIRMWARE_PATH_FMT.format(name=quote(name, safe=""))
        data = await self._request("GET", path)
        return decode_server_firmware(data)

    async def async_get_dashboard(self, namespace: str | None = None) -> DashboardStats:
        """Return fleet-wide dashboard aggregates."""

        data = await self._request(
            "GET", DASHBOARD_PATH, params={"namespace": namespace}
        )
        return decode_dashboard(data)

    async def async_list_events(
        self, limit: int | None = None, node: str | None = None
    ) -> list[HealthEvent]:
        """Return the event log, newest first as sorted by the service."""

        params: dict[str, Any] = {"node": node}
        if limit:
            params["limit"] = str(int(limit))
        data = await self._request("GET", EVENTS_PATH, params=params)
        return decode_events(data)

    async def async_list_tasks(self, namespace: str | None = None) -> list[UpdateTask]:
        """Return BMC firmware tasks."""

        data = await self._request("GET", TASKS_PATH, params={"namespace": namespace})
        return decode_tasks(data)

    async def async_list_updates(self) -> list[UpdateSummaryPayload]:
        """Return pending updates grouped by component type and version."""

        data = await self._request("GET", UPDATES_PATH)
        return decode_updates(data)

    # ----------------- Writes -----------------

    async def async_schedule_updates(
        self,
        servers: Iterable[str],
        components: Iterable[str] | None = None,
        *,
        mode: str = MODE_ON_REBOOT,
    ) -> bool:
        """Submit a batch update job; raises ``ScheduleError`` on failure."""

        body = encode_schedule_request(servers, components, mode)
        _LOGGER.debug(
            "Scheduling %s for %d servers (%s components)",
            mode,
            len(body["servers"]),
            len(body.get("components", ())) or "all",
        )
        data = await self._request(
            "POST", SCHEDULE_PATH, json=body, error_cls=ScheduleError
        )
        response = decode_schedule_response(data)
        if not response.success:
            _LOGGER.warning(
                "Schedule request not acknowledged: %s", response.message or "-"
            )
            raise ScheduleError(response.message or "Scheduling was rejected")
        return True
