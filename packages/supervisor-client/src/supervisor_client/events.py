"""Stream event types and the record parser."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class StreamState(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ERRORED = "errored"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not StreamState.ACTIVE


@dataclass(frozen=True)
class StreamEvent:
    """One fragment of an agent's response."""

    agent: str
    response: str

    def to_dict(self) -> dict[str, str]:
        return {"agent": self.agent, "response": self.response}


def parse_event(text: str) -> StreamEvent | None:
    """Parse a JSON payload into a StreamEvent.

    Returns None, after logging a warning, for anything that is not an object
    with non-empty string ``agent`` and ``response`` fields.
    """
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError) as exc:
        logger.warning("Skipping unparseable stream record %r: %s", text, exc)
        return None

    if not isinstance(parsed, dict):
        logger.warning("Skipping stream record that is not an object: %r", text)
        return None

    agent = parsed.get("agent")
    response = parsed.get("response")
    if not isinstance(agent, str) or not agent:
        logger.warning("Skipping stream record without an agent: %r", text)
        return None
    if not isinstance(response, str) or not response:
        logger.warning("Skipping stream record without a response: %r", text)
        return None

    return StreamEvent(agent=agent, response=response)
