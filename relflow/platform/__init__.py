"""Platform adapters: subprocesses, HTTP, user paths."""

from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from .paths import cli_home, home
from .process import ProcessError, run

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "ProcessError",
    "RealHttpClient",
    "cli_home",
    "home",
    "run",
]
