"""Request body sent to the invoke and stream endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Request:
    """A prompt for the supervisor backend."""

    prompt: str
    config: dict[str, Any] = field(default_factory=dict)
    kwargs: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "input": {"prompt": self.prompt},
            "config": dict(self.config),
            "kwargs": dict(self.kwargs),
        }
