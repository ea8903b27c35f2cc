from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from drift_client.core.config import ClientConfig
from drift_client.errors import (
    DriftConnectionError,
    DriftProtocolError,
    DriftRequestError,
    DriftTimeoutError,
)
from drift_client.schemas.common import Envelope

logger = logging.getLogger(__name__)


def build_headers(config: ClientConfig, has_body: bool) -> dict[str, str]:
    """Return request headers for the configured auth and payload."""

    headers: dict[str, str] = {}
    if has_body:
        headers["Content-Type"] = "application/json"
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"
    return headers


def parse_envelope(response: httpx.Response) -> Envelope:
    """Decode a response body into the success/data/error envelope."""

    try:
        payload: Any = response.json()
    except ValueError as exc:
        raise DriftProtocolError(
            "Malformed response: body is not valid JSON.",
            status_code=response.status_code,
        ) from exc
    if not isinstance(payload, dict):
        raise DriftProtocolError(
            "Malformed response: expected a JSON object envelope.",
            status_code=response.status_code,
        )
    if not response.is_success:
        # A failing status already decides the outcome; only the message is needed.
        payload = {**payload, "success": False}
    try:
        return Envelope.model_validate(payload)
    except ValidationError as exc:
        raise DriftProtocolError(
            "Malformed response: missing or invalid envelope fields.",
            status_code=response.status_code,
        ) from exc


class HTTPTransport:
    """Single-shot JSON requests against the drift service."""

    def __init__(
        self, config: ClientConfig, http_client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self._config = config
        self._client = http_client

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def request(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        """Send one request and return the unwrapped envelope data.

        The whole exchange runs under one deadline of ``timeout_ms``; on expiry
        the in-flight request is cancelled and ``DriftTimeoutError`` is raised.
        """

        url = f"{self._config.base_url}{path}"
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._send(method, url, body), timeout=self._config.timeout_sec
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning(
                "Drift request %s %s timed out after %d ms", method, path, self._config.timeout_ms
            )
            raise DriftTimeoutError(
                f"Request timed out after {self._config.timeout_ms} ms."
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("Drift request %s %s failed: %s", method, path, exc)
            raise DriftConnectionError(f"Connection to drift service failed: {exc}") from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            "Drift request %s %s -> %s (%.1f ms)", method, path, response.status_code, elapsed_ms
        )

        try:
            envelope = parse_envelope(response)
        except DriftProtocolError as exc:
            logger.warning(
                "Drift request %s %s returned a malformed body (%s): %s",
                method,
                path,
                response.status_code,
                exc.message,
            )
            raise
        if not response.is_success or not envelope.success:
            message = envelope.error_message() or f"Request failed: {response.status_code}"
            logger.warning(
                "Drift request %s %s rejected (%s): %s", method, path, response.status_code, message
            )
            raise DriftRequestError(message, status_code=response.status_code)
        return envelope.data

    async def _send(self, method: str, url: str, body: Optional[Any]) -> httpx.Response:
        headers = build_headers(self._config, body is not None)
        timeout = self._config.timeout_sec
        if self._client is not None:
            return await self._client.request(
                method, url, headers=headers, json=body, timeout=timeout
            )
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.request(method, url, headers=headers, json=body)
