"""EventStream: a pull-based async iterator over one streaming exchange.

The stream opens its transport source on the first pull and decodes text
fragments into StreamEvents as the consumer asks for them:

- Pull sources are read directly, one fragment per suspension
- Push sources feed a FIFO of pending items; the consumer parks on a single
  waiter future until a callback appends something
- Early exit (``aclose()``, ``async with``, or the iterator being dropped)
  cancels the source exactly once
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable

from supervisor_client.errors import ClientError, StreamError
from supervisor_client.events import StreamEvent, StreamState, parse_event
from supervisor_client.sse import FrameDecoder, Framing, extract_payload
from supervisor_client.transports.base import PullSource, PushSource, Source

logger = logging.getLogger(__name__)

Opener = Callable[[], Awaitable[Source]]


class _ItemKind(Enum):
    EVENT = "event"
    END = "end"
    ERROR = "error"


@dataclass(frozen=True)
class _Item:
    kind: _ItemKind
    event: StreamEvent | None = None
    error: Exception | None = None


class _Handoff:
    """Append-only queue with at most one waiting consumer."""

    def __init__(self) -> None:
        self._items: deque[_Item] = deque()
        self._waiter: asyncio.Future[None] | None = None
        self.closed = False

    def put(self, item: _Item) -> None:
        if self.closed:
            return
        self._items.append(item)
        self._wake()

    def close(self) -> None:
        """Drop pending items; a parked or later get() sees the end."""
        self.closed = True
        self._items.clear()
        self._wake()

    def _wake(self) -> None:
        waiter = self._waiter
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

    async def get(self) -> _Item:
        while not self._items:
            if self.closed:
                return _Item(_ItemKind.END)
            self._waiter = asyncio.get_running_loop().create_future()
            try:
                await self._waiter
            finally:
                self._waiter = None
        return self._items.popleft()


class EventStream:
    """Async iterator of StreamEvents backed by a transport source."""

    def __init__(self, opener: Opener, *, framing: Framing = Framing.LINE):
        self._opener = opener
        self._framing = Framing(framing)
        self._state = StreamState.ACTIVE
        self._source: Source | None = None
        self._handoff: _Handoff | None = None
        self._puller: asyncio.Task | None = None
        self._released = False
        self._events = self._run()
        self.skipped = 0

    @property
    def state(self) -> StreamState:
        return self._state

    def __aiter__(self) -> EventStream:
        return self

    async def __anext__(self) -> StreamEvent:
        self._puller = asyncio.current_task()
        try:
            return await anext(self._events)
        finally:
            self._puller = None

    async def aclose(self) -> None:
        """Stop consuming and release the transport.

        May be called from any task. A pull parked in another task ends with
        StopAsyncIteration once the source is released.
        """
        if self._state is StreamState.ACTIVE:
            self._set_state(StreamState.CANCELLED)
        if self._handoff is not None:
            self._handoff.close()
        try:
            await self._release()
        finally:
            puller = self._puller
            if puller is None or puller is asyncio.current_task():
                await self._events.aclose()

    async def __aenter__(self) -> EventStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _set_state(self, state: StreamState) -> None:
        logger.debug("Stream %s -> %s", self._state.value, state.value)
        self._state = state

    async def _release(self) -> None:
        if self._released or self._source is None:
            return
        self._released = True
        await self._source.cancel()

    async def _run(self) -> AsyncIterator[StreamEvent]:
        try:
            self._source = await self._opener()
            if self._state is StreamState.CANCELLED:
                return
            if isinstance(self._source, PushSource):
                events = self._pushed(self._source)
            else:
                events = self._pulled(self._source)

            async with aclosing(events):
                async for event in events:
                    yield event
            if self._state is StreamState.ACTIVE:
                self._set_state(StreamState.COMPLETED)
        except Exception as exc:
            # A read cut short by aclose() from another task ends the stream quietly
            if self._state is StreamState.CANCELLED:
                return
            self._set_state(StreamState.ERRORED)
            if isinstance(exc, ClientError):
                raise
            raise StreamError(f"Stream failed: {exc}", cause=exc) from exc
        finally:
            if self._state is StreamState.ACTIVE:
                self._set_state(StreamState.CANCELLED)
            await self._release()

    async def _pulled(self, source: PullSource) -> AsyncIterator[StreamEvent]:
        decoder = FrameDecoder(self._framing)
        while True:
            fragment, final = await source.read()
            if self._state is StreamState.CANCELLED:
                return
            records = decoder.feed(fragment)
            if final:
                records.extend(decoder.flush())

            for record in records:
                event = self._parse(record)
                if event is not None:
                    yield event

            if final:
                return

    async def _pushed(self, source: PushSource) -> AsyncIterator[StreamEvent]:
        decoder = FrameDecoder(self._framing)
        handoff = self._handoff = _Handoff()

        def enqueue(records: list[str]) -> None:
            for record in records:
                event = self._parse(record)
                if event is not None:
                    handoff.put(_Item(_ItemKind.EVENT, event=event))

        def on_fragment(fragment: str) -> None:
            enqueue(decoder.feed(fragment))

        def on_complete() -> None:
            enqueue(decoder.flush())
            handoff.put(_Item(_ItemKind.END))

        def on_error(exc: Exception) -> None:
            handoff.put(_Item(_ItemKind.ERROR, error=exc))

        source.start(on_fragment, on_complete, on_error)
        try:
            while True:
                item = await handoff.get()
                if item.kind is _ItemKind.END:
                    return
                if item.kind is _ItemKind.ERROR:
                    assert item.error is not None
                    raise item.error
                assert item.event is not None
                yield item.event
        finally:
            handoff.closed = True

    def _parse(self, record: str) -> StreamEvent | None:
        payload = extract_payload(record)
        if payload is None:
            return None
        event = parse_event(payload)
        if event is None:
            self.skipped += 1
        return event
