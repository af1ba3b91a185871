"""Remote build/publish: socket.io session, backend REST calls, template upload."""

from __future__ import annotations

from relflow.publish.protocol import FAILURE_ACTIONS, PublishMessage, PublishRequest, parse_message
from relflow.publish.session import PublishSession, SessionSnapshot

__all__ = [
    "FAILURE_ACTIONS",
    "PublishMessage",
    "PublishRequest",
    "PublishSession",
    "SessionSnapshot",
    "parse_message",
]
