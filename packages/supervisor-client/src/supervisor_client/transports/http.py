"""HTTP transports built on httpx streaming responses."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from supervisor_client.errors import (
    AbortError,
    ClientError,
    NetworkError,
    RequestTimeoutError,
    StreamError,
    detail_from_body,
    error_from_status_code,
)
from supervisor_client.transports.base import (
    CompleteCallback,
    ErrorCallback,
    FragmentCallback,
    PullSource,
    PushSource,
    Transport,
)

logger = logging.getLogger(__name__)

# Success statuses that never carry a body to stream
_NO_BODY_STATUSES = (204, 205)


def error_from_httpx(exc: Exception) -> ClientError:
    """Map an httpx exception raised mid-request to a client error."""
    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeoutError(f"Request timed out: {exc}", cause=exc)
    if isinstance(exc, httpx.TransportError):
        return NetworkError(f"Network error: {exc}", cause=exc)
    return StreamError(f"Stream failed: {exc}", cause=exc)


def error_from_response(response: httpx.Response, *, context: str) -> ClientError:
    """Build the error for a rejected response whose body has been read."""
    raw: dict[str, Any] | None
    try:
        parsed = response.json()
    except (ValueError, httpx.ResponseNotRead):
        parsed = None
    raw = parsed if isinstance(parsed, dict) else None

    detail = detail_from_body(raw, response.status_code)
    message = f"{context}: {detail}"

    if response.is_success:
        return StreamError(message)

    return error_from_status_code(
        status_code=response.status_code,
        message=message,
        detail=detail,
        raw=raw,
    )


class HTTPTransport(Transport):
    """POSTs to a streaming endpoint and reads the body as a pull source."""

    def __init__(
        self,
        *,
        url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
        headers: dict[str, str] | None = None,
    ):
        self._url = url
        self._headers = dict(headers or {})
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def url(self) -> str:
        return self._url

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _build_headers(self) -> dict[str, str]:
        return {
            **self._headers,
            "accept": "text/event-stream",
            "content-type": "application/json",
        }

    async def open(self, payload: dict[str, Any]) -> PullSource:
        return HTTPPullSource(await self._send(payload))

    async def _send(self, payload: dict[str, Any]) -> httpx.Response:
        request = self._client.build_request(
            "POST",
            self._url,
            json=payload,
            headers=self._build_headers(),
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise error_from_httpx(exc) from exc

        if response.is_success and response.status_code not in _NO_BODY_STATUSES:
            logger.debug("Stream opened: POST %s -> %d", self._url, response.status_code)
            return response

        try:
            await response.aread()
        except httpx.HTTPError as exc:
            # Body unreadable; the status code alone describes the failure
            logger.debug("Could not read error body from %s: %s", self._url, exc)
        finally:
            await response.aclose()
        raise error_from_response(response, context="API stream request failed")


class HTTPCallbackTransport(HTTPTransport):
    """Same exchange as HTTPTransport, delivered through callbacks."""

    async def open(self, payload: dict[str, Any]) -> PushSource:
        return HTTPPushSource(await self._send(payload))


class HTTPPullSource(PullSource):
    def __init__(self, response: httpx.Response):
        self._response = response
        self._chunks = response.aiter_text()
        self._finished = False
        self._cancelled = False
        self._reading = False

    async def read(self) -> tuple[str, bool]:
        if self._cancelled:
            raise AbortError("Stream was cancelled")
        if self._finished:
            return "", True

        while True:
            self._reading = True
            try:
                fragment = await anext(self._chunks)
            except StopAsyncIteration:
                self._finished = True
                await self._response.aclose()
                return "", True
            except (httpx.HTTPError, httpx.StreamError) as exc:
                self._finished = True
                await self._response.aclose()
                raise error_from_httpx(exc) from exc
            finally:
                self._reading = False

            if fragment:
                return fragment, False

    async def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        # A read in progress elsewhere ends once the response is closed
        if not self._reading:
            await self._chunks.aclose()
        await self._response.aclose()


class HTTPPushSource(PushSource):
    def __init__(self, response: httpx.Response):
        self._response = response
        self._task: asyncio.Task | None = None
        self._cancelled = False

    def start(
        self,
        on_fragment: FragmentCallback,
        on_complete: CompleteCallback,
        on_error: ErrorCallback,
    ) -> None:
        if self._task is not None:
            raise RuntimeError("Source already started")
        if self._cancelled:
            raise AbortError("Stream was cancelled")
        self._task = asyncio.create_task(self._pump(on_fragment, on_complete, on_error))

    async def _pump(
        self,
        on_fragment: FragmentCallback,
        on_complete: CompleteCallback,
        on_error: ErrorCallback,
    ) -> None:
        try:
            async for fragment in self._response.aiter_text():
                if self._cancelled:
                    return
                if fragment:
                    on_fragment(fragment)
        except (httpx.HTTPError, httpx.StreamError) as exc:
            if not self._cancelled:
                on_error(error_from_httpx(exc))
        except Exception as exc:
            # Anything else still has to reach the waiting consumer
            if not self._cancelled:
                on_error(exc)
        else:
            if not self._cancelled:
                on_complete()
        finally:
            await self._response.aclose()

    async def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            # wait() leaves a cancellation aimed at the caller free to propagate
            await asyncio.wait([self._task])
        await self._response.aclose()
