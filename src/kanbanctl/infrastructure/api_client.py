"""HTTP client for the companion board server.

Writes that go through the server are broadcast to connected viewers in
real time; writes made straight to SQLite are not. The executor therefore
prefers this client and only writes directly when the server is down or
misbehaving.

Two timeouts: a short one for the health probe so an offline server is
detected quickly, and a longer one for the actual record operations.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:8090"
HEALTH_CHECK_TIMEOUT = 0.5
API_REQUEST_TIMEOUT = 5.0

_TASKS_PATH = "/api/collections/tasks/records"


class ApiError(Exception):
    """The server answered with an error status."""

    def __init__(self, status_code: int, message: str, data: dict[str, Any] | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.data = data or {}
        super().__init__(f"API error {status_code}: {message}")

    @property
    def is_validation_error(self) -> bool:
        """A 4xx response: the server rejected the payload itself."""
        return 400 <= self.status_code < 500


class ApiUnavailableError(Exception):
    """The request never produced a usable response (network, timeout, bad body)."""


def parse_api_error(status_code: int, body: bytes | str) -> ApiError:
    """Build an :class:`ApiError` from a ``{status, message, data}`` body.

    Bodies that are not that shape fall back to the raw text, or
    ``HTTP <code>`` when the body is empty.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    try:
        payload = json.loads(text)
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = str(payload.get("message") or "")
        data = payload.get("data")
        return ApiError(status_code, message, data if isinstance(data, dict) else None)
    return ApiError(status_code, text or f"HTTP {status_code}")


class ApiClient:
    """Task CRUD against the board server's records API.

    ``transport`` is passed through to :class:`httpx.Client`; tests supply
    an :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVER_URL,
        *,
        health_timeout: float = HEALTH_CHECK_TIMEOUT,
        request_timeout: float = API_REQUEST_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._health_timeout = health_timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def is_server_running(self) -> bool:
        """True only when ``/api/health`` answers 200 within the health timeout."""
        try:
            response = self._client.get("/api/health", timeout=self._health_timeout)
        except httpx.HTTPError as exc:
            logger.debug("Health check against %s failed: %s", self.base_url, exc)
            return False
        return response.status_code == 200

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    def create_task(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._json_request("POST", _TASKS_PATH, payload)

    def update_task(self, task_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._json_request("PATCH", f"{_TASKS_PATH}/{task_id}", payload)

    def delete_task(self, task_id: str) -> None:
        self._send("DELETE", f"{_TASKS_PATH}/{task_id}")

    def _send(self, method: str, path: str, payload: dict[str, Any] | None = None) -> httpx.Response:
        try:
            response = self._client.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            msg = f"request failed: {exc}"
            raise ApiUnavailableError(msg) from exc
        if response.status_code >= 400:
            raise parse_api_error(response.status_code, response.content)
        return response

    def _json_request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        response = self._send(method, path, payload)
        try:
            body = response.json()
        except ValueError as exc:
            msg = f"failed to parse response: {exc}"
            raise ApiUnavailableError(msg) from exc
        if not isinstance(body, dict):
            msg = f"unexpected response body: {type(body).__name__}"
            raise ApiUnavailableError(msg)
        return body
