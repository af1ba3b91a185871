"""Tests for relflow.platform.http module."""

from __future__ import annotations

import http.server
import threading
from collections.abc import Iterator

import pytest

from relflow.core.result import Err, Ok
from relflow.platform.http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from relflow.providers import GiteeProvider


class TestHttpError:
    def test_str_with_status(self) -> None:
        error = HttpError(url="https://x/y", status=401, message="Unauthorized")
        assert str(error) == "HTTP 401: Unauthorized (https://x/y)"

    def test_str_network(self) -> None:
        assert str(HttpError(url="https://x", status=0, message="refused")) == "refused (https://x)"

    def test_is_not_found(self) -> None:
        assert HttpError(url="u", status=404, message="").is_not_found is True
        assert HttpError(url="u", status=500, message="").is_not_found is False


class TestMockHttpClient:
    def test_json_response(self) -> None:
        client = MockHttpClient()
        client.set_json("GET", "https://api/user", {"login": "octo"})
        assert client.get_json("https://api/user", params={"page": 1}) == Ok({"login": "octo"})
        assert client.calls[0].params == {"page": 1}

    def test_unset_url_is_404(self) -> None:
        result = MockHttpClient().get_json("https://api/missing")
        assert isinstance(result, Err)
        assert result.error.is_not_found

    def test_configured_error(self) -> None:
        client = MockHttpClient()
        client.set_json("POST", "https://api/repos", HttpError(url="https://api/repos", status=422, message="exists"))
        result = client.post_json("https://api/repos", {"name": "app"})
        assert isinstance(result, Err)
        assert result.error.status == 422
        assert client.calls[0].body == {"name": "app"}

    def test_text(self) -> None:
        client = MockHttpClient()
        client.set_text("https://cdn/index.html", "<html></html>")
        assert client.get_text("https://cdn/index.html") == Ok("<html></html>")
        assert client.urls("GET") == ["https://cdn/index.html"]

    def test_implements_protocol(self) -> None:
        assert isinstance(MockHttpClient(), HttpClient)
        assert isinstance(RealHttpClient(), HttpClient)


class TestRealHttpClient:
    def test_unreachable_host_is_err(self) -> None:
        result = RealHttpClient(timeout=0.5).get_json("http://127.0.0.1:9/none")
        assert isinstance(result, Err)
        assert result.error.status == 0


class _Unauthorized(http.server.BaseHTTPRequestHandler):
    def do_GET(self) -> None:
        self.send_response(401, "Unauthorized")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format: str, *args: object) -> None:
        pass


@pytest.fixture
def unauthorized_server() -> Iterator[str]:
    server = http.server.HTTPServer(("127.0.0.1", 0), _Unauthorized)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


class TestQueryRedaction:
    def test_http_error_url_drops_query(self, unauthorized_server: str) -> None:
        result = RealHttpClient(timeout=5.0).get_json(
            f"{unauthorized_server}/user", params={"access_token": "SECRET-TOKEN-123"}
        )
        assert isinstance(result, Err)
        assert result.error.status == 401
        assert result.error.url == f"{unauthorized_server}/user"
        assert "SECRET-TOKEN-123" not in str(result.error)

    def test_gitee_token_stays_out_of_error_message(
        self, unauthorized_server: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(GiteeProvider, "api_base", unauthorized_server)
        provider = GiteeProvider(RealHttpClient(timeout=5.0))
        provider.set_token("SECRET-TOKEN-123")

        result = provider.get_user()

        assert isinstance(result, Err)
        assert "HTTP 401" in result.error.message
        assert "SECRET-TOKEN-123" not in result.error.message
        assert "SECRET-TOKEN-123" not in (result.error.hint or "")
