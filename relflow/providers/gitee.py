from __future__ import annotations

from typing import ClassVar

from relflow.providers.base import RepositoryProvider
from relflow.release.model import ProviderType

__all__ = ["GiteeProvider"]


class GiteeProvider(RepositoryProvider):
    """Gitee API v5. The token travels as the ``access_token`` query parameter."""

    provider_type: ClassVar[ProviderType] = "gitee"
    api_base: ClassVar[str] = "https://gitee.com/api/v5"

    def remote_url(self, owner: str, name: str) -> str:
        return f"git@gitee.com:{owner}/{name}.git"

    def token_issuance_url(self) -> str:
        return "https://gitee.com/personal_access_tokens"

    def _auth(self, token: str) -> tuple[dict[str, str], dict[str, str | int]]:
        return {}, {"access_token": token}

    def _orgs_path(self, login: str | None) -> str | None:
        if not login:
            return None
        return f"/users/{login}/orgs"
