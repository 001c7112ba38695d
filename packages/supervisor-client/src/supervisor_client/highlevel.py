"""High-level helpers for consuming event streams."""

from __future__ import annotations

from typing import AsyncIterable

from supervisor_client.events import StreamEvent


class StreamAccumulator:
    """Accumulate stream events into per-agent text."""

    def __init__(self) -> None:
        self._events: list[StreamEvent] = []
        self._transcript: list[tuple[str, list[str]]] = []

    def process(self, event: StreamEvent) -> None:
        self._events.append(event)
        if self._transcript and self._transcript[-1][0] == event.agent:
            self._transcript[-1][1].append(event.response)
        else:
            self._transcript.append((event.agent, [event.response]))

    @property
    def events(self) -> list[StreamEvent]:
        return list(self._events)

    @property
    def transcript(self) -> list[tuple[str, str]]:
        """Turns in arrival order; consecutive events from one agent are merged."""
        return [(agent, "".join(parts)) for agent, parts in self._transcript]

    @property
    def agents(self) -> list[str]:
        """Agents in order of first appearance."""
        seen: dict[str, None] = {}
        for event in self._events:
            seen.setdefault(event.agent, None)
        return list(seen)

    def text(self, agent: str | None = None) -> str:
        """All response text, or only the text from one agent."""
        return "".join(
            event.response
            for event in self._events
            if agent is None or event.agent == agent
        )


async def collect(events: AsyncIterable[StreamEvent]) -> StreamAccumulator:
    """Drain an event stream into a StreamAccumulator."""
    accumulator = StreamAccumulator()
    async for event in events:
        accumulator.process(event)
    return accumulator
