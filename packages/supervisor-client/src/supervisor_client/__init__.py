"""Client for a supervisor model backend with typed event streaming."""

from supervisor_client.bridge import EventStream
from supervisor_client.client import SupervisorClient
from supervisor_client.errors import (
    AbortError,
    APIError,
    ClientError,
    ConfigurationError,
    InvalidResponseError,
    NetworkError,
    StreamError,
)
from supervisor_client.events import StreamEvent, StreamState, parse_event
from supervisor_client.highlevel import StreamAccumulator, collect
from supervisor_client.request import Request
from supervisor_client.sse import FrameDecoder, Framing, extract_payload
from supervisor_client.transports import (
    HTTPCallbackTransport,
    HTTPTransport,
    PullSource,
    PushSource,
    Transport,
)

__all__ = [
    "APIError",
    "AbortError",
    "ClientError",
    "ConfigurationError",
    "EventStream",
    "FrameDecoder",
    "Framing",
    "HTTPCallbackTransport",
    "HTTPTransport",
    "InvalidResponseError",
    "NetworkError",
    "PullSource",
    "PushSource",
    "Request",
    "StreamAccumulator",
    "StreamError",
    "StreamEvent",
    "StreamState",
    "SupervisorClient",
    "Transport",
    "collect",
    "extract_payload",
    "parse_event",
]
