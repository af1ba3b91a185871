"""Tests for the relflow command line."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import relflow.cli.commands.publish_cmd as publish_cmd
from relflow import __version__
from relflow.cli.app import app
from relflow.core.result import Err, Ok, Result
from relflow.release.errors import ReleaseError
from relflow.services.orchestrator import ReleaseOutcome

runner = CliRunner()


class _StubOrchestrator:
    result: Result[ReleaseOutcome, ReleaseError] = Ok(ReleaseOutcome("app", "1.3.0", "dev/1.3.0"))
    seen: dict[str, object] = {}

    def __init__(self, **kwargs: object) -> None:
        type(self).seen = kwargs

    def run(self) -> Result[ReleaseOutcome, ReleaseError]:
        return self.result


@pytest.fixture
def stub(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> type[_StubOrchestrator]:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("RELFLOW_HOME", raising=False)
    monkeypatch.setattr(publish_cmd, "ReleaseOrchestrator", _StubOrchestrator)
    _StubOrchestrator.result = Ok(ReleaseOutcome("app", "1.3.0", "dev/1.3.0"))
    _StubOrchestrator.seen = {}
    return _StubOrchestrator


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestPublishCommand:
    def test_success(self, stub: type[_StubOrchestrator], tmp_path: Path) -> None:
        result = runner.invoke(app, ["publish", "--dir", str(tmp_path), "--prod", "--build-cmd", "cnpm run build"])
        assert result.exit_code == 0
        assert "app@1.3.0 released from dev/1.3.0" in result.output
        config = stub.seen["config"]
        assert getattr(config, "prod") is True
        assert getattr(config, "build_cmd") == "cnpm run build"
        assert stub.seen["source_dir"] == tmp_path.resolve()

    def test_refresh_flags(self, stub: type[_StubOrchestrator], tmp_path: Path) -> None:
        result = runner.invoke(app, ["publish", "--dir", str(tmp_path), "--refresh-token", "--refresh-owner"])
        assert result.exit_code == 0
        refresh = getattr(stub.seen["config"], "refresh")
        assert (refresh.server, refresh.token, refresh.owner) == (False, True, True)

    def test_error_exit_code_and_hint(self, stub: type[_StubOrchestrator], tmp_path: Path) -> None:
        stub.result = Err(ReleaseError(kind="conflict", message="working tree has conflicts", hint="src/a.ts"))
        result = runner.invoke(app, ["publish", "--dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "working tree has conflicts" in result.output
        assert "hint: src/a.ts" in result.output

    def test_network_error_code(self, stub: type[_StubOrchestrator], tmp_path: Path) -> None:
        stub.result = Err(ReleaseError(kind="connect_timeout", message="no acknowledgement"))
        result = runner.invoke(app, ["publish", "--dir", str(tmp_path)])
        assert result.exit_code == 4

    def test_partial_ssh_options_rejected(self, stub: type[_StubOrchestrator], tmp_path: Path) -> None:
        result = runner.invoke(app, ["publish", "--dir", str(tmp_path), "--ssh-user", "deploy"])
        assert result.exit_code == 1
        assert stub.seen == {}

    def test_full_ssh_options(self, stub: type[_StubOrchestrator], tmp_path: Path) -> None:
        args = ["publish", "--dir", str(tmp_path), "--ssh-user", "deploy", "--ssh-ip", "10.0.0.5", "--ssh-path", "/srv"]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert getattr(stub.seen["config"], "history_router") is True

    def test_missing_directory(self, stub: type[_StubOrchestrator], tmp_path: Path) -> None:
        result = runner.invoke(app, ["publish", "--dir", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert stub.seen == {}
