"""Publish session over a socket.io connection.

States:

    connecting --ack--> open --failure action--> failed --close--> closed
    connecting --timeout | transport error--> closed
    open --disconnect--> closed

The connect timer and the server acknowledgement race on one event loop;
whichever lands first decides, and the other is ignored because every
handler checks the current state before acting. Events arriving once the
session is closed are dropped.

Usage:
    session = PublishSession(
        server_url=config.publish_server_url,
        namespace=config.publish_namespace,
        request=request,
        console=console,
    )
    result = asyncio.run(session.run())  # Ok(True) on success
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, Literal, Protocol, TypeVar

import socketio
import socketio.exceptions

from relflow.core.config import CONNECT_TIMEOUT_SECONDS, PUBLISH_TIMEOUT_SECONDS
from relflow.core.result import Err, Ok, Result
from relflow.output.console import ConsoleProtocol, Style
from relflow.publish.protocol import (
    BUILDING_EVENT,
    ERROR_EVENT,
    PUBLISH_EVENT,
    PublishRequest,
    connection_url,
    parse_message,
)
from relflow.release.errors import ReleaseError

__all__ = ["ConnectionState", "PublishSession", "SessionSnapshot", "SocketClient"]

ConnectionState = Literal["idle", "connecting", "open", "failed", "closed"]

_TRANSPORT_ERRORS = (socketio.exceptions.SocketIOError, OSError)


class SocketClient(Protocol):
    """The part of ``socketio.AsyncClient`` the session relies on."""

    def on(self, event: str, handler: Callable[..., Any], namespace: str | None = None) -> Any: ...

    async def connect(
        self,
        url: str,
        *,
        namespaces: list[str] | None = None,
        transports: list[str] | None = None,
        wait: bool = True,
    ) -> None: ...

    async def emit(self, event: str, data: Any = None, namespace: str | None = None) -> None: ...

    async def disconnect(self) -> None: ...

    def get_sid(self, namespace: str | None = None) -> str | None: ...


def default_client() -> SocketClient:
    return socketio.AsyncClient(reconnection=False)


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    session_id: str | None
    connection_state: ConnectionState
    last_action: str | None
    last_message: str | None


class PublishSession:
    def __init__(
        self,
        *,
        server_url: str,
        namespace: str,
        request: PublishRequest,
        console: ConsoleProtocol,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        publish_timeout: float = PUBLISH_TIMEOUT_SECONDS,
        client_factory: Callable[[], SocketClient] = default_client,
        on_building: Callable[[object], None] | None = None,
    ) -> None:
        self.server_url = server_url
        self.namespace = namespace
        self.request = request
        self.console = console
        self.connect_timeout = connect_timeout
        self.publish_timeout = publish_timeout
        self._client_factory = client_factory
        self._on_building_cb = on_building or self._print_building

        self.state: ConnectionState = "idle"
        self.session_id: str | None = None
        self.last_action: str | None = None
        self.last_message: str | None = None

        self._client: SocketClient | None = None
        self._client_closed = False
        self._timer: asyncio.TimerHandle | None = None
        self._opened: asyncio.Future[Result[str, ReleaseError]] | None = None
        self._finished: asyncio.Future[Result[bool, ReleaseError]] | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._connect_task: asyncio.Task[None] | None = None

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            connection_state=self.state,
            last_action=self.last_action,
            last_message=self.last_message,
        )

    async def run(self) -> Result[bool, ReleaseError]:
        """Connect, request the publish, and wait for the outcome."""
        opened = await self.connect()
        if isinstance(opened, Err):
            return opened
        return await self.publish()

    # -- phases -------------------------------------------------------------

    async def connect(self) -> Result[str, ReleaseError]:
        """Open the connection; Ok(session id) once acknowledged."""
        if self.state != "idle":
            raise RuntimeError(f"session already started (state: {self.state})")
        loop = asyncio.get_running_loop()
        self._opened = loop.create_future()
        self._finished = loop.create_future()
        self._client = self._client_factory()
        self._register(self._client)

        self.state = "connecting"
        self.console.info(f"connecting to publish service (timeout {self.connect_timeout:g}s)")
        self._timer = loop.call_later(self.connect_timeout, self._on_connect_timeout)
        self._connect_task = self._spawn(self._transport_connect())

        result = await self._opened
        if isinstance(result, Err):
            if self._connect_task is not None:
                self._connect_task.cancel()
            await self._drain()
        return result

    async def publish(self) -> Result[bool, ReleaseError]:
        """Request the publish run and wait until the connection closes.

        Ok(True) when the service closed the connection without reporting a
        failure action, Ok(False) when it reported one.
        """
        if self.state != "open" or self._client is None or self._finished is None:
            raise RuntimeError(f"publish requires an open session (state: {self.state})")

        try:
            await self._client.emit(PUBLISH_EVENT, namespace=self.namespace)
        except _TRANSPORT_ERRORS as e:
            await self._shutdown()
            return Err(ReleaseError(kind="network", message=f"failed to request publish: {e}"))

        try:
            result = await asyncio.wait_for(self._finished, self.publish_timeout)
        except TimeoutError:
            self.console.error(f"publish did not finish within {self.publish_timeout:g}s")
            self.state = "closed"
            await self._shutdown()
            return Err(
                ReleaseError(
                    kind="publish_timeout",
                    message="publish service did not close the session in time",
                    hint=f"session {self.session_id}",
                )
            )
        await self._drain()
        return result

    # -- handlers -----------------------------------------------------------

    def _register(self, client: SocketClient) -> None:
        ns = self.namespace
        client.on("connect", self._on_connect, namespace=ns)
        client.on("connect_error", self._on_error, namespace=ns)
        client.on("disconnect", self._on_disconnect, namespace=ns)
        client.on(ERROR_EVENT, self._on_error, namespace=ns)
        client.on(PUBLISH_EVENT, self._on_publish, namespace=ns)
        client.on(BUILDING_EVENT, self._on_building, namespace=ns)

    def _on_connect(self) -> None:
        if self.state != "connecting" or self._client is None:
            self.console.debug("late connection acknowledgement ignored")
            return
        self._cancel_timer()
        self.state = "open"
        self.session_id = self._client.get_sid(self.namespace)
        if self.session_id:
            self._client.on(self.session_id, self._on_progress, namespace=self.namespace)
        self.console.success(f"publish session created (id: {self.session_id})")
        _resolve(self._opened, Ok(self.session_id or ""))

    def _on_connect_timeout(self) -> None:
        self._timer = None
        if self.state != "connecting":
            return
        self.state = "closed"
        self.console.error("publish service connection timed out")
        self._spawn(self._shutdown())
        _resolve(
            self._opened,
            Err(
                ReleaseError(
                    kind="connect_timeout",
                    message=f"no acknowledgement from {self.server_url} within {self.connect_timeout:g}s",
                )
            ),
        )

    def _on_error(self, data: object = None) -> None:
        if self.state in ("idle", "closed"):
            return
        self._cancel_timer()
        was_connecting = self.state == "connecting"
        self.state = "closed"
        self.console.error(f"publish connection error: {data}")
        self._spawn(self._shutdown())
        error = ReleaseError(kind="network", message=f"publish connection error: {data}")
        if was_connecting:
            _resolve(self._opened, Err(error))
        else:
            _resolve(self._finished, Err(error))

    def _on_disconnect(self, reason: object = None) -> None:
        if self.state in ("idle", "closed"):
            return
        self._cancel_timer()
        self.console.debug(f"disconnect ({reason})")
        if self.state == "connecting":
            self.state = "closed"
            _resolve(
                self._opened,
                Err(ReleaseError(kind="network", message="connection closed before acknowledgement")),
            )
            return
        failed = self.state == "failed"
        self.state = "closed"
        self.console.success("publish session closed")
        _resolve(self._finished, Ok(not failed))

    def _on_publish(self, raw: object = None) -> None:
        if self.state != "open":
            return
        msg = parse_message(raw)
        self.last_action = msg.action
        self.last_message = msg.message
        if msg.is_failure:
            self.console.error(str(msg))
            self.state = "failed"
            self._spawn(self._close_after_failure())
        else:
            self.console.success(str(msg))

    def _on_building(self, raw: object = None) -> None:
        if self.state != "open":
            return
        self._on_building_cb(raw)

    def _on_progress(self, raw: object = None) -> None:
        if self.state not in ("open", "failed"):
            return
        self.console.success(str(parse_message(raw)))

    def _print_building(self, raw: object) -> None:
        self.console.print(str(raw), Style.DIM)

    # -- internals ----------------------------------------------------------

    async def _transport_connect(self) -> None:
        if self._client is None:
            return
        url = connection_url(self.server_url, self.request)
        self.console.debug(f"connect {url}")
        try:
            await self._client.connect(url, namespaces=[self.namespace], wait=False)
        except _TRANSPORT_ERRORS as e:
            if self.state != "connecting":
                return
            self._cancel_timer()
            self.state = "closed"
            _resolve(
                self._opened,
                Err(ReleaseError(kind="network", message=f"cannot reach publish service: {e}")),
            )

    async def _close_after_failure(self) -> None:
        await self._shutdown()
        # The client may not report its own disconnect; the session is over either way.
        self._on_disconnect("client")

    async def _shutdown(self) -> None:
        self._cancel_timer()
        if self._client is None or self._client_closed:
            return
        self._client_closed = True
        try:
            await self._client.disconnect()
        except _TRANSPORT_ERRORS as e:
            self.console.debug(f"disconnect failed: {e}")

    async def _drain(self) -> None:
        pending = [t for t in self._tasks if not t.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


T = TypeVar("T")


def _resolve(future: asyncio.Future[T] | None, value: T) -> None:
    if future is not None and not future.done():
        future.set_result(value)
