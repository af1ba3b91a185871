"""Tests for publish/preflight.py."""

from __future__ import annotations

from relflow.core.result import Err, Ok
from relflow.output.console import MockConsole
from relflow.platform.http import HttpError, MockHttpClient
from relflow.publish.preflight import PublishBackend, check_overwrite
from relflow.release.decisions import ScriptedDecisions

API = "http://api.test/cli"
PROJECT_URL = f"{API}/project/getOssTargetProject"
FILE_URL = f"{API}/project/getOssTargetFile"


def _backend(http: MockHttpClient) -> PublishBackend:
    return PublishBackend(http=http, api_base_url=API + "/")


class TestProjectExists:
    def test_existing(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", PROJECT_URL, {"code": 0, "data": [{"name": "app/index.html"}]})
        assert _backend(http).project_exists("app", prod=True) == Ok(True)
        assert http.calls[0].params == {"name": "app", "type": "prod"}

    def test_empty_or_nonzero_code(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", PROJECT_URL, {"code": 0, "data": []})
        assert _backend(http).project_exists("app", prod=False) == Ok(False)
        http.set_json("GET", PROJECT_URL, {"code": 1, "data": [{"name": "x"}]})
        assert _backend(http).project_exists("app", prod=False) == Ok(False)

    def test_network_error(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", PROJECT_URL, HttpError(url=PROJECT_URL, status=0, message="refused"))
        result = _backend(http).project_exists("app", prod=True)
        assert isinstance(result, Err)
        assert result.error.kind == "network"


class TestTemplateUrl:
    def test_url(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", FILE_URL, {"code": 0, "data": {"url": "https://cdn.test/app/index.html"}})
        assert _backend(http).template_url("app", prod=False) == Ok("https://cdn.test/app/index.html")
        assert http.calls[0].params == {"name": "app", "type": "dev", "file": "index.html"}

    def test_missing_url(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", FILE_URL, {"code": 404, "msg": "no such file"})
        result = _backend(http).template_url("app", prod=False)
        assert isinstance(result, Err)
        assert result.error.hint == "no such file"


class TestCheckOverwrite:
    def test_skipped_outside_prod(self) -> None:
        http = MockHttpClient()
        decisions = ScriptedDecisions()
        result = check_overwrite(_backend(http), name="app", prod=False, console=MockConsole(), decisions=decisions)
        assert result == Ok(None)
        assert http.calls == []

    def test_new_project(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", PROJECT_URL, {"code": 0, "data": []})
        decisions = ScriptedDecisions()
        assert check_overwrite(_backend(http), name="app", prod=True, console=MockConsole(), decisions=decisions) == Ok(None)
        assert decisions.asked == []

    def test_confirmed(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", PROJECT_URL, {"code": 0, "data": ["index.html"]})
        decisions = ScriptedDecisions(overwrite=True)
        assert check_overwrite(_backend(http), name="app", prod=True, console=MockConsole(), decisions=decisions) == Ok(None)
        assert decisions.asked == ["overwrite:app"]

    def test_declined(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", PROJECT_URL, {"code": 0, "data": ["index.html"]})
        result = check_overwrite(
            _backend(http), name="app", prod=True, console=MockConsole(), decisions=ScriptedDecisions(overwrite=False)
        )
        assert isinstance(result, Err)
        assert result.error.kind == "aborted"
