"""SupervisorClient: single-shot and streaming calls to the supervisor backend."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

import httpx

from supervisor_client.bridge import EventStream
from supervisor_client.errors import ConfigurationError, InvalidResponseError
from supervisor_client.request import Request
from supervisor_client.sse import Framing
from supervisor_client.transports.base import Source, Transport
from supervisor_client.transports.http import (
    HTTPCallbackTransport,
    HTTPTransport,
    error_from_httpx,
    error_from_response,
)

logger = logging.getLogger(__name__)

DEFAULT_INVOKE_PATH = "/invoke"
DEFAULT_STREAM_PATH = "/stream"

_STREAM_MODES = {
    "pull": HTTPTransport,
    "callback": HTTPCallbackTransport,
}


class SupervisorClient:
    """Talks to the invoke and stream endpoints of one backend."""

    def __init__(
        self,
        *,
        base_url: str,
        invoke_path: str = DEFAULT_INVOKE_PATH,
        stream_path: str = DEFAULT_STREAM_PATH,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
        framing: Framing = Framing.LINE,
        stream_mode: str = "pull",
        transport: Transport | None = None,
        headers: dict[str, str] | None = None,
    ):
        transport_cls = _STREAM_MODES.get(stream_mode)
        if transport_cls is None:
            raise ConfigurationError(
                f"Unknown stream mode: {stream_mode!r}. "
                f"Available: {list(_STREAM_MODES.keys())}"
            )

        self._base_url = base_url.rstrip("/")
        self._invoke_url = f"{self._base_url}{invoke_path}"
        self._stream_url = f"{self._base_url}{stream_path}"
        self._headers = dict(headers or {})
        self._framing = Framing(framing)
        self._owns_client = http_client is None
        self._owns_transport = transport is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._transport = transport or transport_cls(
            url=self._stream_url,
            http_client=self._client,
            headers=self._headers,
        )
        logger.debug(
            "Supervisor client ready: invoke=%s stream=%s",
            self._invoke_url,
            self._stream_url,
        )

    @classmethod
    def from_env(
        cls,
        *,
        environ: Mapping[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> SupervisorClient:
        """Build a client from SUPERVISOR_* environment variables."""
        env = os.environ if environ is None else environ

        base_url = env.get("SUPERVISOR_BASE_URL")
        if not base_url:
            raise ConfigurationError("SUPERVISOR_BASE_URL is not set")

        timeout_value = env.get("SUPERVISOR_TIMEOUT") or "60"
        try:
            timeout = float(timeout_value)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid SUPERVISOR_TIMEOUT: {timeout_value!r}", cause=exc
            ) from exc

        framing_value = env.get("SUPERVISOR_FRAMING") or Framing.LINE.value
        try:
            framing = Framing(framing_value)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid SUPERVISOR_FRAMING: {framing_value!r}. "
                f"Expected one of: {[f.value for f in Framing]}",
                cause=exc,
            ) from exc

        return cls(
            base_url=base_url,
            invoke_path=env.get("SUPERVISOR_INVOKE_PATH") or DEFAULT_INVOKE_PATH,
            stream_path=env.get("SUPERVISOR_STREAM_PATH") or DEFAULT_STREAM_PATH,
            http_client=http_client,
            timeout=timeout,
            framing=framing,
            stream_mode=env.get("SUPERVISOR_STREAM_MODE") or "pull",
        )

    @property
    def invoke_url(self) -> str:
        return self._invoke_url

    @property
    def stream_url(self) -> str:
        return self._stream_url

    async def run_query(self, prompt: str) -> str:
        """Send a prompt to the invoke endpoint and return the model's answer."""
        payload = Request(prompt=prompt).to_payload()
        try:
            try:
                response = await self._client.post(
                    self._invoke_url,
                    json=payload,
                    headers={**self._headers, "accept": "application/json"},
                )
            except httpx.HTTPError as exc:
                raise error_from_httpx(exc) from exc

            if not response.is_success:
                raise error_from_response(response, context="API request failed")

            return self._parse_content(response)
        except Exception as exc:
            logger.error("Failed to communicate with the supervisor model: %s", exc)
            raise

    def run_query_stream(self, prompt: str) -> EventStream:
        """Stream a prompt's response as StreamEvents.

        The request is sent on the first pull. Every call opens a new connection.
        """
        payload = Request(prompt=prompt).to_payload()

        async def open_source() -> Source:
            try:
                return await self._transport.open(payload)
            except Exception as exc:
                logger.error("Failed to stream from the supervisor model: %s", exc)
                raise

        return EventStream(open_source, framing=self._framing)

    def _parse_content(self, response: httpx.Response) -> str:
        try:
            raw: Any = response.json()
        except ValueError as exc:
            raise InvalidResponseError(
                "Invalid response format from the AI. The body is not valid JSON.",
                cause=exc,
            ) from exc

        output = raw.get("output") if isinstance(raw, dict) else None
        content = output.get("content") if isinstance(output, dict) else None
        if not isinstance(content, str):
            raise InvalidResponseError(
                "Invalid response format from the AI. "
                "The 'output.content' field is missing or not a string."
            )
        return content

    async def close(self) -> None:
        """Close the transport and the HTTP client if this client created them."""
        if self._owns_transport:
            await self._transport.close()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> SupervisorClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
