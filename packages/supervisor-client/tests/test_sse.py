"""Tests for record framing and payload extraction."""

import pytest

from supervisor_client.sse import FrameDecoder, Framing, extract_payload

STREAM = (
    'data: {"agent":"planner","response":"Thinking"}\n\n'
    'data: {"agent":"planner","response":" about it"}\n\n'
    'event: update\ndata: {"agent":"coder","response":"done"}\n\n'
)


def _decode(fragments: list[str], framing: Framing = Framing.BLANK_LINE) -> list[str]:
    decoder = FrameDecoder(framing)
    records: list[str] = []
    for fragment in fragments:
        records.extend(decoder.feed(fragment))
    records.extend(decoder.flush())
    return records


def _split_every(text: str, size: int) -> list[str]:
    return [text[i : i + size] for i in range(0, len(text), size)]


class TestBlankLineFraming:
    def test_single_fragment_single_record(self):
        assert _decode(["data: hello\n\n"]) == ["data: hello"]

    def test_record_split_across_fragments(self):
        fragments = ['data: {"agent":"A"', ',"response":"hi"}\n\n']
        assert _decode(fragments) == ['data: {"agent":"A","response":"hi"}']

    def test_several_boundaries_in_one_fragment(self):
        decoder = FrameDecoder(Framing.BLANK_LINE)
        records = decoder.feed("data: one\n\ndata: two\n\ndata: thr")
        assert records == ["data: one", "data: two"]
        assert decoder.pending == "data: thr"

    def test_boundary_split_between_fragments(self):
        assert _decode(["data: one\n", "\ndata: two\n", "\n"]) == ["data: one", "data: two"]

    def test_multi_line_record_kept_whole(self):
        assert _decode(["event: update\ndata: x\n\n"]) == ["event: update\ndata: x"]

    def test_crlf_boundaries(self):
        assert _decode(["data: one\r\n\r\ndata: two\r", "\n\r\n"]) == ["data: one", "data: two"]

    def test_empty_records_skipped(self):
        assert _decode(["\n\n\n\ndata: one\n\n"]) == ["data: one"]

    def test_flush_returns_trailing_record(self):
        decoder = FrameDecoder(Framing.BLANK_LINE)
        assert decoder.feed("data: one\n\ndata: tail") == ["data: one"]
        assert decoder.flush() == ["data: tail"]
        assert decoder.pending == ""
        assert decoder.flush() == []

    def test_flush_ignores_whitespace(self):
        decoder = FrameDecoder(Framing.BLANK_LINE)
        decoder.feed("data: one\n\n\n")
        assert decoder.flush() == []

    def test_empty_fragment_is_noop(self):
        decoder = FrameDecoder(Framing.BLANK_LINE)
        assert decoder.feed("") == []
        assert decoder.pending == ""


class TestLineFraming:
    def test_each_line_is_a_record(self):
        records = _decode(['{"a":1}\n{"b":2}\n'], Framing.LINE)
        assert records == ['{"a":1}', '{"b":2}']

    def test_blank_lines_skipped(self):
        assert _decode(["data: one\n\n\ndata: two\n"], Framing.LINE) == ["data: one", "data: two"]

    def test_last_piece_stays_buffered(self):
        decoder = FrameDecoder(Framing.LINE)
        assert decoder.feed("one\ntw") == ["one"]
        assert decoder.pending == "tw"
        assert decoder.feed("o\n") == ["two"]

    def test_lines_are_stripped(self):
        assert _decode(["  data: one \r\n"], Framing.LINE) == ["data: one"]

    def test_flush_returns_trailing_line(self):
        assert _decode(["one\ntwo"], Framing.LINE) == ["one", "two"]

    def test_line_framing_is_default(self):
        decoder = FrameDecoder()
        assert decoder.framing is Framing.LINE
        assert decoder.feed("data: one\ndata: two\n") == ["data: one", "data: two"]

    def test_framing_accepts_string_value(self):
        assert FrameDecoder("line").framing is Framing.LINE


class TestRechunking:
    @pytest.mark.parametrize("size", [1, 2, 3, 7, 16, 1000])
    def test_blank_line_records_independent_of_chunking(self, size):
        expected = _decode([STREAM])
        assert len(expected) == 3
        assert _decode(_split_every(STREAM, size)) == expected

    @pytest.mark.parametrize("size", [1, 5, 11])
    def test_line_records_independent_of_chunking(self, size):
        text = STREAM.replace("\n\n", "\n")
        assert _decode(_split_every(text, size), Framing.LINE) == _decode([text], Framing.LINE)

    @pytest.mark.parametrize("size", [1, 3])
    def test_crlf_independent_of_chunking(self, size):
        text = STREAM.replace("\n", "\r\n")
        assert _decode(_split_every(text, size)) == _decode([STREAM])


class TestExtractPayload:
    def test_data_prefix_with_space(self):
        assert extract_payload('data: {"x":1}') == '{"x":1}'

    def test_data_prefix_without_space(self):
        assert extract_payload('data:{"x":1}') == '{"x":1}'

    def test_other_fields_ignored(self):
        record = "event: update\nid: 7\nretry: 100\ndata: payload"
        assert extract_payload(record) == "payload"

    def test_multi_line_data_joined(self):
        assert extract_payload("data: line one\ndata: line two") == "line one\nline two"

    def test_comment_only_record(self):
        assert extract_payload(": keep-alive") is None

    def test_field_only_record(self):
        assert extract_payload("event: ping") is None

    def test_bare_json_taken_verbatim(self):
        assert extract_payload('{"agent":"A","response":"a: b"}') == '{"agent":"A","response":"a: b"}'

    def test_done_sentinel(self):
        assert extract_payload("data: [DONE]") is None
        assert extract_payload("[DONE]") is None

    def test_empty_data(self):
        assert extract_payload("data: ") is None
