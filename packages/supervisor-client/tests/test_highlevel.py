"""Tests for stream accumulation helpers."""

from supervisor_client.events import StreamEvent
from supervisor_client.highlevel import StreamAccumulator, collect


def _events() -> list[StreamEvent]:
    return [
        StreamEvent(agent="supervisor", response="Routing to "),
        StreamEvent(agent="supervisor", response="research"),
        StreamEvent(agent="researcher", response="Found "),
        StreamEvent(agent="researcher", response="2 papers"),
        StreamEvent(agent="supervisor", response="Done"),
    ]


class TestStreamAccumulator:
    def test_transcript_merges_consecutive_turns(self):
        acc = StreamAccumulator()
        for event in _events():
            acc.process(event)

        assert acc.transcript == [
            ("supervisor", "Routing to research"),
            ("researcher", "Found 2 papers"),
            ("supervisor", "Done"),
        ]

    def test_agents_in_first_seen_order(self):
        acc = StreamAccumulator()
        for event in _events():
            acc.process(event)
        assert acc.agents == ["supervisor", "researcher"]

    def test_text(self):
        acc = StreamAccumulator()
        for event in _events():
            acc.process(event)
        assert acc.text() == "Routing to researchFound 2 papersDone"
        assert acc.text("researcher") == "Found 2 papers"
        assert acc.text("nobody") == ""

    def test_empty(self):
        acc = StreamAccumulator()
        assert acc.transcript == []
        assert acc.agents == []
        assert acc.events == []


async def test_collect_drains_stream():
    async def events():
        for event in _events():
            yield event

    acc = await collect(events())
    assert len(acc.events) == 5
    assert acc.transcript[-1] == ("supervisor", "Done")
