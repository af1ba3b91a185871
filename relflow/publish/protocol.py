"""Wire format of the publish service.

Inbound messages use the envelope ``{data: {action, payload: {message}}}``.
The connection itself carries the publish request as URL query parameters.
"""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass

from relflow.core.structured import dig

__all__ = [
    "BUILDING_EVENT",
    "FAILURE_ACTIONS",
    "PUBLISH_EVENT",
    "PublishMessage",
    "PublishRequest",
    "connection_url",
    "parse_message",
]

PUBLISH_EVENT = "publish"
BUILDING_EVENT = "building"
ERROR_EVENT = "error"

# Terminal actions reported by the remote pipeline
FAILURE_ACTIONS = frozenset(
    {
        "prepare failed",
        "download failed",
        "install failed",
        "build failed",
        "pre-publish failed",
        "publish failed",
    }
)


@dataclass(frozen=True, slots=True)
class PublishMessage:
    action: str | None
    message: str | None

    @property
    def is_failure(self) -> bool:
        return self.action in FAILURE_ACTIONS

    def __str__(self) -> str:
        return " ".join(part for part in (self.action, self.message) if part) or "(empty message)"


def parse_message(raw: object) -> PublishMessage:
    """Extract action and message; missing or non-string fields become None."""
    action = dig(raw, "data", "action")
    message = dig(raw, "data", "payload", "message")
    return PublishMessage(
        action=action if isinstance(action, str) else None,
        message=message if isinstance(message, str) else None,
    )


@dataclass(frozen=True, slots=True)
class PublishRequest:
    """What to build and where, sent when the connection opens.

    Attributes:
        provider_type: Repository host (github, gitee)
        login: Owner the repository lives under
        name: Repository name
        branch: Development branch to build
        version: Version being published
        build_cmd: npm/cnpm build command
        history_router: Whether index.html is served by a separate server
        prod: Production publish
    """

    provider_type: str
    login: str
    name: str
    branch: str
    version: str
    build_cmd: str
    history_router: bool = False
    prod: bool = False

    def query(self) -> dict[str, str]:
        return {
            "gitType": self.provider_type,
            "login": self.login,
            "name": self.name,
            "branch": self.branch,
            "version": self.version,
            "buildCmd": self.build_cmd,
            "isHistoryRouter": _flag(self.history_router),
            "prod": _flag(self.prod),
        }


def _flag(value: bool) -> str:
    return "true" if value else "false"


def connection_url(server_url: str, request: PublishRequest) -> str:
    sep = "&" if "?" in server_url else "?"
    return f"{server_url}{sep}{urllib.parse.urlencode(request.query())}"
