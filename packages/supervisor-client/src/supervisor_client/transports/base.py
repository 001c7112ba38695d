"""Transport and stream source abstract base classes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Union

FragmentCallback = Callable[[str], None]
CompleteCallback = Callable[[], None]
ErrorCallback = Callable[[Exception], None]


class PullSource(ABC):
    """A live connection the consumer reads from."""

    @abstractmethod
    async def read(self) -> tuple[str, bool]:
        """Wait for the next fragment.

        Returns ``(fragment, is_final)``; the final read returns ``("", True)``.
        """
        ...

    @abstractmethod
    async def cancel(self) -> None:
        """Abort the connection. Safe to call more than once."""
        ...


class PushSource(ABC):
    """A live connection that delivers fragments through callbacks."""

    @abstractmethod
    def start(
        self,
        on_fragment: FragmentCallback,
        on_complete: CompleteCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Begin delivery. Callbacks run on the event loop thread."""
        ...

    @abstractmethod
    async def cancel(self) -> None:
        """Abort the connection; no callback fires afterwards."""
        ...


Source = Union[PullSource, PushSource]


class Transport(ABC):
    """Opens one streaming exchange per call."""

    @abstractmethod
    async def open(self, payload: dict[str, Any]) -> Source:
        """Send the request and return a live source once the response is accepted."""
        ...

    async def close(self) -> None:
        """Release resources (HTTP connections, etc.)."""
