"""Stream transports."""

from supervisor_client.transports.base import PullSource, PushSource, Source, Transport
from supervisor_client.transports.http import (
    HTTPCallbackTransport,
    HTTPPullSource,
    HTTPPushSource,
    HTTPTransport,
)

__all__ = [
    "HTTPCallbackTransport",
    "HTTPPullSource",
    "HTTPPushSource",
    "HTTPTransport",
    "PullSource",
    "PushSource",
    "Source",
    "Transport",
]
