"""HTTP client abstraction for REST calls.

This module provides:
- HttpClient: Protocol for JSON REST operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from relflow import __version__
from relflow.core.result import Err, Ok, Result

__all__ = [
    "HttpCall",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "Params",
    "RealHttpClient",
]

Params = Mapping[str, str | int]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for JSON REST operations."""

    def get_json(
        self,
        url: str,
        *,
        params: Params | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[object, HttpError]:
        """GET ``url`` and decode the JSON body (object or array)."""
        ...

    def post_json(
        self,
        url: str,
        body: Mapping[str, object],
        *,
        params: Params | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[object, HttpError]:
        """POST a JSON body and decode the JSON response."""
        ...

    def get_text(self, url: str) -> Result[str, HttpError]:
        """GET ``url`` and return the body as text."""
        ...


def _with_params(url: str, params: Params | None) -> str:
    if not params:
        return url
    query = urllib.parse.urlencode({k: str(v) for k, v in params.items()})
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{query}"


def _without_query(url: str) -> str:
    # Query strings can carry credentials (gitee access_token).
    return urllib.parse.urlsplit(url)._replace(query="", fragment="").geturl()


class RealHttpClient:
    """HTTP client using urllib with system certificates."""

    def __init__(self, timeout: float = 5.0, user_agent: str = f"relflow/{__version__}") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _request(
        self,
        method: str,
        url: str,
        *,
        data: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[bytes, HttpError]:
        merged = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if data is not None:
            merged["Content-Type"] = "application/json"
        if headers:
            merged.update(headers)
        shown = _without_query(url)
        try:
            req = urllib.request.Request(url, data=data, headers=merged, method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=shown, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=shown, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=shown, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=shown, status=0, message=str(e)))

    def _decode_json(self, url: str, raw: bytes) -> Result[object, HttpError]:
        try:
            data: object = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        return Ok(data)

    def get_json(
        self,
        url: str,
        *,
        params: Params | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[object, HttpError]:
        full = _with_params(url, params)
        result = self._request("GET", full, headers=headers)
        if isinstance(result, Err):
            return result
        return self._decode_json(_without_query(full), result.value)

    def post_json(
        self,
        url: str,
        body: Mapping[str, object],
        *,
        params: Params | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[object, HttpError]:
        full = _with_params(url, params)
        payload = json.dumps(dict(body)).encode("utf-8")
        result = self._request("POST", full, data=payload, headers=headers)
        if isinstance(result, Err):
            return result
        return self._decode_json(_without_query(full), result.value)

    def get_text(self, url: str) -> Result[str, HttpError]:
        result = self._request("GET", url)
        if isinstance(result, Err):
            return result
        try:
            return Ok(result.value.decode("utf-8"))
        except UnicodeDecodeError as e:
            return Err(HttpError(url=_without_query(url), status=0, message=f"Decode error: {e}"))


@dataclass(frozen=True, slots=True)
class HttpCall:
    """A request recorded by MockHttpClient."""

    method: str
    url: str
    params: dict[str, str | int] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, object] | None = None


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are keyed by method and URL (without query string).

    Usage:
        client = MockHttpClient()
        client.set_json("GET", "https://api.github.com/user", {"login": "octo"})
        client.get_json("https://api.github.com/user")  # Ok({"login": "octo"})
    """

    def __init__(self) -> None:
        self._json: dict[tuple[str, str], object | HttpError] = {}
        self._text: dict[str, str | HttpError] = {}
        self.calls: list[HttpCall] = []

    def set_json(self, method: str, url: str, response: object | HttpError) -> None:
        self._json[(method.upper(), url)] = response

    def set_text(self, url: str, response: str | HttpError) -> None:
        self._text[url] = response

    def _respond(self, method: str, url: str) -> Result[object, HttpError]:
        key = (method, url)
        if key not in self._json:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = self._json[key]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_json(
        self,
        url: str,
        *,
        params: Params | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[object, HttpError]:
        self.calls.append(HttpCall("GET", url, dict(params or {}), dict(headers or {})))
        return self._respond("GET", url)

    def post_json(
        self,
        url: str,
        body: Mapping[str, object],
        *,
        params: Params | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[object, HttpError]:
        self.calls.append(
            HttpCall("POST", url, dict(params or {}), dict(headers or {}), dict(body))
        )
        return self._respond("POST", url)

    def get_text(self, url: str) -> Result[str, HttpError]:
        self.calls.append(HttpCall("GET", url))
        if url not in self._text:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = self._text[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def urls(self, method: str | None = None) -> list[str]:
        """URLs requested so far, optionally filtered by method."""
        return [c.url for c in self.calls if method is None or c.method == method]
