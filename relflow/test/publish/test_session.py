"""Tests for publish/session.py, driven by a scripted socket client."""

from __future__ import annotations

import asyncio
import urllib.parse

import pytest

from relflow.core.result import Err, Ok, Result
from relflow.output.console import MockConsole
from relflow.publish.protocol import FAILURE_ACTIONS, PublishRequest
from relflow.publish.session import PublishSession
from relflow.release.errors import ReleaseError
from relflow.test.fakes import FakeSocketClient, publish_msg

REQUEST = PublishRequest(
    provider_type="gitee",
    login="acme",
    name="app",
    branch="dev/1.3.0",
    version="1.3.0",
    build_cmd="npm run build",
)


def _session(
    client: FakeSocketClient,
    *,
    console: MockConsole | None = None,
    connect_timeout: float = 1.0,
    publish_timeout: float = 1.0,
    on_building: list[object] | None = None,
) -> PublishSession:
    return PublishSession(
        server_url="http://publish.test",
        namespace="/io",
        request=REQUEST,
        console=console or MockConsole(),
        connect_timeout=connect_timeout,
        publish_timeout=publish_timeout,
        client_factory=lambda: client,
        on_building=on_building.append if on_building is not None else None,
    )


def _run(session: PublishSession) -> Result[bool, ReleaseError]:
    return asyncio.run(session.run())


class TestSuccess:
    def test_clean_close_is_success(self) -> None:
        client = FakeSocketClient(
            script=[("publish", publish_msg("install", "done")), ("publish", publish_msg("publish", "uploaded"))]
        )
        session = _session(client)
        assert _run(session) == Ok(True)
        snap = session.snapshot()
        assert snap.connection_state == "closed"
        assert snap.session_id == "sid-1"
        assert (snap.last_action, snap.last_message) == ("publish", "uploaded")
        assert client.emitted == ["publish"]

    def test_request_travels_in_query(self) -> None:
        client = FakeSocketClient()
        _run(_session(client))
        assert client.url is not None
        query = dict(urllib.parse.parse_qsl(urllib.parse.urlsplit(client.url).query))
        assert query["gitType"] == "gitee"
        assert query["branch"] == "dev/1.3.0"
        assert client.namespaces == ["/io"]

    def test_building_output_forwarded(self) -> None:
        seen: list[object] = []
        client = FakeSocketClient(script=[("building", "vite v5 building"), ("building", "dist/ 120kB")])
        assert _run(_session(client, on_building=seen)) == Ok(True)
        assert seen == ["vite v5 building", "dist/ 120kB"]

    def test_session_channel_progress(self) -> None:
        console = MockConsole()
        client = FakeSocketClient(sid="abc", script=[("abc", publish_msg("download", "repo cloned"))])
        assert _run(_session(client, console=console)) == Ok(True)
        assert console.find("download repo cloned")


class TestFailureAction:
    @pytest.mark.parametrize("action", sorted(FAILURE_ACTIONS))
    def test_building_then_failure(self, action: str) -> None:
        seen: list[object] = []
        client = FakeSocketClient(
            script=[("building", "step1"), ("publish", publish_msg(action))],
            close_after_script=False,
        )
        session = _session(client, on_building=seen)
        assert _run(session) == Ok(False)
        assert seen == ["step1"]
        assert session.state == "closed"
        assert session.snapshot().last_action == action

    def test_failure_action_closes_with_false(self) -> None:
        console = MockConsole()
        client = FakeSocketClient(
            script=[("publish", publish_msg("install", "ok")), ("publish", publish_msg("build failed", "exit 1"))],
            close_after_script=False,
        )
        session = _session(client, console=console)
        assert _run(session) == Ok(False)
        assert client.disconnect_calls == 1
        assert session.snapshot().last_action == "build failed"
        assert console.find("build failed exit 1")[0].message.startswith("error:")

    def test_failure_without_disconnect_event(self) -> None:
        client = FakeSocketClient(
            script=[("publish", publish_msg("prepare failed"))],
            close_after_script=False,
            notify_disconnect=False,
        )
        assert _run(_session(client, publish_timeout=5.0)) == Ok(False)

    def test_messages_after_failure_ignored(self) -> None:
        client = FakeSocketClient(
            script=[("publish", publish_msg("download failed")), ("publish", publish_msg("publish", "late"))],
            close_after_script=False,
        )
        session = _session(client)
        assert _run(session) == Ok(False)
        assert session.snapshot().last_action == "download failed"


class TestConnectFailures:
    def test_timeout_without_ack(self) -> None:
        client = FakeSocketClient(ack=False)
        session = _session(client, connect_timeout=0.01)
        result = _run(session)
        assert isinstance(result, Err)
        assert result.error.kind == "connect_timeout"
        assert session.state == "closed"
        assert client.emitted == []
        assert client.disconnect_calls == 1

    def test_late_ack_ignored(self) -> None:
        client = FakeSocketClient(ack=False)
        session = _session(client, connect_timeout=0.01)

        async def scenario() -> Result[str, ReleaseError]:
            result = await session.connect()
            client.fire("connect")
            return result

        result = asyncio.run(scenario())
        assert isinstance(result, Err)
        assert session.state == "closed"
        assert session.session_id is None

    def test_transport_error(self) -> None:
        client = FakeSocketClient(connect_error=OSError("connection refused"))
        result = _run(_session(client))
        assert isinstance(result, Err)
        assert result.error.kind == "network"
        assert "connection refused" in result.error.message

    def test_connect_error_event(self) -> None:
        client = FakeSocketClient(ack=False)
        session = _session(client)

        async def scenario() -> Result[str, ReleaseError]:
            asyncio.get_running_loop().call_later(0.001, client.fire, "connect_error", "unauthorized")
            return await session.connect()

        result = asyncio.run(scenario())
        assert isinstance(result, Err)
        assert result.error.kind == "network"
        assert "unauthorized" in result.error.message


class TestOpenSessionFailures:
    def test_error_event_after_open(self) -> None:
        client = FakeSocketClient(script=[("error", "socket hang up")], close_after_script=False)
        result = _run(_session(client))
        assert isinstance(result, Err)
        assert result.error.kind == "network"
        assert client.disconnect_calls == 1

    def test_publish_timeout(self) -> None:
        client = FakeSocketClient(close_after_script=False)
        session = _session(client, publish_timeout=0.02)
        result = _run(session)
        assert isinstance(result, Err)
        assert result.error.kind == "publish_timeout"
        assert session.state == "closed"
        assert client.disconnect_calls == 1

    def test_events_after_close_ignored(self) -> None:
        console = MockConsole()
        client = FakeSocketClient()
        session = _session(client, console=console)
        assert _run(session) == Ok(True)
        before = list(console.messages)
        client.fire("publish", publish_msg("build failed", "too late"))
        client.fire("disconnect", "again")
        assert console.messages == before
        assert session.state == "closed"


class TestLifecycle:
    def test_single_use(self) -> None:
        client = FakeSocketClient()
        session = _session(client)
        _run(session)
        with pytest.raises(RuntimeError):
            asyncio.run(session.connect())

    def test_publish_requires_open_session(self) -> None:
        session = _session(FakeSocketClient())
        with pytest.raises(RuntimeError):
            asyncio.run(session.publish())
