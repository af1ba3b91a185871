"""Remote repository hosts (GitHub, Gitee).

The host is picked by the value stored in the credential cache:

    match create_provider(stored_type, http):
        case Ok(provider):
            provider.set_token(token)
        case Err(e):
            console.error(e.message)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relflow.core.result import Err, Ok, Result
from relflow.providers.base import RemoteOrg, RemoteRepo, RemoteUser, RepositoryProvider
from relflow.providers.gitee import GiteeProvider
from relflow.providers.github import GithubProvider
from relflow.release.errors import ReleaseError

if TYPE_CHECKING:
    from relflow.platform.http import HttpClient

__all__ = [
    "GiteeProvider",
    "GithubProvider",
    "PROVIDERS",
    "RemoteOrg",
    "RemoteRepo",
    "RemoteUser",
    "RepositoryProvider",
    "create_provider",
]

PROVIDERS: dict[str, type[RepositoryProvider]] = {
    GithubProvider.provider_type: GithubProvider,
    GiteeProvider.provider_type: GiteeProvider,
}


def create_provider(provider_type: str, http: HttpClient) -> Result[RepositoryProvider, ReleaseError]:
    cls = PROVIDERS.get(provider_type.strip().lower())
    if cls is None:
        return Err(
            ReleaseError(
                kind="provider_init",
                message=f"unknown repository host: {provider_type!r}",
                hint="Re-run with --refresh-server to pick github or gitee.",
            )
        )
    return Ok(cls(http))
