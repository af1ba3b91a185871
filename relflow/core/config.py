"""Invocation configuration.

A single ``Config`` is built once at process start (see ``Config.from_env``)
and passed to every component that needs it. Nothing below the CLI layer
reads environment variables directly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from relflow.platform.paths import cli_home

__all__ = [
    "Config",
    "CONNECT_TIMEOUT_SECONDS",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_PUBLISH_NAMESPACE",
    "DEFAULT_PUBLISH_SERVER_URL",
    "HTTP_TIMEOUT_SECONDS",
    "PUBLISH_TIMEOUT_SECONDS",
    "RefreshFlags",
    "SshTarget",
]

DEFAULT_API_BASE_URL = "http://localhost:7001/cli"
DEFAULT_PUBLISH_SERVER_URL = "http://localhost:7002"
DEFAULT_PUBLISH_NAMESPACE = "/io"

# Publish connection must be acknowledged within this window
CONNECT_TIMEOUT_SECONDS = 5.0

# Upper bound for a whole publish run once the connection is open
PUBLISH_TIMEOUT_SECONDS = 5 * 60.0

HTTP_TIMEOUT_SECONDS = 5.0

_TRUTHY = {"1", "true", "yes", "on", "verbose"}


@dataclass(frozen=True, slots=True)
class RefreshFlags:
    """Force re-prompting for cached credential values."""

    server: bool = False
    token: bool = False
    owner: bool = False


@dataclass(frozen=True, slots=True)
class SshTarget:
    """Server receiving the index.html template in history-router mode."""

    user: str
    host: str
    path: str


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container.

    Attributes:
        home: relflow home (credential cache, template scratch space)
        debug: Print debug diagnostics
        api_base_url: Publish backend REST base URL
        publish_server_url: Publish backend socket.io server
        publish_namespace: socket.io namespace of the publish service
        connect_timeout: Seconds to wait for the connection acknowledgement
        publish_timeout: Seconds to wait for a publish run to finish
        http_timeout: Seconds per REST request
        refresh: Force-refresh flags for cached credential values
        build_cmd: Build command sent to the publish backend (None: default)
        prod: Production publish (tags and merges on success)
        ssh: Template upload target, None when not in history-router mode
    """

    home: Path
    debug: bool = False
    api_base_url: str = DEFAULT_API_BASE_URL
    publish_server_url: str = DEFAULT_PUBLISH_SERVER_URL
    publish_namespace: str = DEFAULT_PUBLISH_NAMESPACE
    connect_timeout: float = CONNECT_TIMEOUT_SECONDS
    publish_timeout: float = PUBLISH_TIMEOUT_SECONDS
    http_timeout: float = HTTP_TIMEOUT_SECONDS
    refresh: RefreshFlags = field(default_factory=RefreshFlags)
    build_cmd: str | None = None
    prod: bool = False
    ssh: SshTarget | None = None

    @property
    def credential_dir(self) -> Path:
        """Directory holding one file per cached credential value."""
        return self.home / ".git"

    @property
    def template_dir(self) -> Path:
        return self.home / "oss"

    @property
    def history_router(self) -> bool:
        return self.ssh is not None

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        debug: bool = False,
        refresh: RefreshFlags | None = None,
        build_cmd: str | None = None,
        prod: bool = False,
        ssh: SshTarget | None = None,
    ) -> Config:
        """Build the configuration from environment overrides and CLI flags.

        Recognized variables: RELFLOW_HOME, RELFLOW_DEBUG, RELFLOW_API_URL,
        RELFLOW_PUBLISH_SERVER.
        """
        env = os.environ if environ is None else environ
        env_debug = env.get("RELFLOW_DEBUG", "").strip().lower() in _TRUTHY
        return cls(
            home=cli_home(env),
            debug=debug or env_debug,
            api_base_url=env.get("RELFLOW_API_URL", "").strip() or DEFAULT_API_BASE_URL,
            publish_server_url=(
                env.get("RELFLOW_PUBLISH_SERVER", "").strip() or DEFAULT_PUBLISH_SERVER_URL
            ),
            refresh=refresh or RefreshFlags(),
            build_cmd=build_cmd or None,
            prod=prod,
            ssh=ssh,
        )
