from __future__ import annotations

from typing import ClassVar

from relflow.providers.base import RepositoryProvider
from relflow.release.model import ProviderType

__all__ = ["GithubProvider"]


class GithubProvider(RepositoryProvider):
    """GitHub REST v3. The token travels as a bearer header."""

    provider_type: ClassVar[ProviderType] = "github"
    api_base: ClassVar[str] = "https://api.github.com"

    def remote_url(self, owner: str, name: str) -> str:
        return f"git@github.com:{owner}/{name}.git"

    def token_issuance_url(self) -> str:
        return "https://github.com/settings/tokens"

    def _auth(self, token: str) -> tuple[dict[str, str], dict[str, str | int]]:
        return {"Authorization": f"Bearer {token}"}, {}

    def _orgs_path(self, login: str | None) -> str | None:
        # GitHub lists the token owner's orgs; the login is implied.
        return "/user/orgs"

    def _create_headers(self) -> dict[str, str]:
        return {"Accept": "application/vnd.github.v3+json"}
