"""Framing of a Server-Sent Events style text stream into records."""

from __future__ import annotations

from enum import Enum

DONE_SENTINEL = "[DONE]"

_FIELD_NAMES = ("event", "id", "retry")


class Framing(str, Enum):
    """Where one record ends and the next begins."""

    BLANK_LINE = "blank_line"
    LINE = "line"


class FrameDecoder:
    """Reassemble arbitrarily split text fragments into complete records.

    - BLANK_LINE: a record ends at ``\\n\\n``; several records may end inside
      one fragment
    - LINE: every newline ends a record; blank lines are skipped
    - Trailing text with no closing boundary is returned by ``flush()``

    The pending buffer has no size limit.
    """

    def __init__(self, framing: Framing = Framing.LINE):
        self._framing = Framing(framing)
        self._buffer = ""

    @property
    def framing(self) -> Framing:
        return self._framing

    @property
    def pending(self) -> str:
        """Text received but not yet resolved into a record."""
        return self._buffer

    def feed(self, fragment: str) -> list[str]:
        """Append a fragment and return every record it completed."""
        if not fragment:
            return []

        self._buffer += fragment
        # A CR/LF pair may straddle two fragments, so normalise the whole buffer
        if "\r\n" in self._buffer:
            self._buffer = self._buffer.replace("\r\n", "\n")

        if self._framing == Framing.LINE:
            return self._split_lines()
        return self._split_blocks()

    def flush(self) -> list[str]:
        """Return leftover buffered text as a final record, emptying the buffer."""
        remainder = self._buffer
        self._buffer = ""
        if not remainder.strip():
            return []
        if self._framing == Framing.LINE:
            return [remainder.strip()]
        return [remainder]

    def _split_blocks(self) -> list[str]:
        records: list[str] = []
        while "\n\n" in self._buffer:
            record, self._buffer = self._buffer.split("\n\n", 1)
            if record.strip():
                records.append(record)
        return records

    def _split_lines(self) -> list[str]:
        *lines, self._buffer = self._buffer.split("\n")
        return [line.strip() for line in lines if line.strip()]


def extract_payload(record: str) -> str | None:
    """Return the data carried by one record, or None if it carries none.

    Values of ``data:`` lines are joined with newlines (one space after the
    colon is dropped). Comments and ``event``/``id``/``retry`` fields are
    ignored. A record with no SSE fields at all is taken verbatim, so bare
    JSON lines work too. ``[DONE]`` carries no data.
    """
    data_lines: list[str] = []
    saw_field = False

    for line in record.split("\n"):
        line = line.rstrip("\r")
        if line.startswith(":"):
            saw_field = True
            continue

        field, sep, value = line.partition(":")
        if not sep:
            continue
        if field == "data":
            data_lines.append(value[1:] if value.startswith(" ") else value)
        elif field in _FIELD_NAMES:
            saw_field = True

    if data_lines:
        payload = "\n".join(data_lines).strip()
    elif saw_field:
        return None
    else:
        payload = record.strip()

    if not payload or payload == DONE_SENTINEL:
        return None
    return payload
