"""Credential cache and the prompts that fill it.

Each value lives in its own file under ``<home>/.git/``:

    .git_server   github | gitee
    .git_token    personal access token
    .git_own      user | org
    .git_login    login the repository is created under
    .git_publish  publish target type (oss)

A missing value, or a force-refresh flag, triggers a prompt and a write.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

from relflow.core.config import RefreshFlags
from relflow.core.result import Err, Ok, Result
from relflow.output.console import ConsoleProtocol
from relflow.platform.files import atomic_write_text, read_scalar
from relflow.platform.http import HttpClient
from relflow.providers import RepositoryProvider, create_provider
from relflow.release.decisions import Decisions
from relflow.release.errors import ReleaseError
from relflow.release.model import (
    PROVIDER_TYPES,
    PUBLISH_TARGETS,
    Credential,
    OwnerKind,
    ProviderType,
    PublishTarget,
)

__all__ = ["CredentialKey", "CredentialResolver", "CredentialStore", "ResolvedCredential"]

CredentialKey = Literal["server", "token", "owner", "login", "publish"]

_FILES: dict[CredentialKey, str] = {
    "server": ".git_server",
    "token": ".git_token",
    "owner": ".git_own",
    "login": ".git_login",
    "publish": ".git_publish",
}


class CredentialStore:
    """One scalar per file under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path(self, key: CredentialKey) -> Path:
        return self.root / _FILES[key]

    def read(self, key: CredentialKey) -> str | None:
        try:
            return read_scalar(self.path(key))
        except OSError:
            return None

    def write(self, key: CredentialKey, value: str) -> Result[Path, ReleaseError]:
        path = self.path(key)
        try:
            atomic_write_text(path, value)
        except OSError as e:
            return Err(ReleaseError(kind="io_failed", message=f"cannot write {path}: {e}"))
        return Ok(path)


@dataclass(frozen=True, slots=True)
class ResolvedCredential:
    credential: Credential
    provider: RepositoryProvider


class CredentialResolver:
    """Load cached credentials, prompting for whatever is missing."""

    def __init__(
        self,
        *,
        store: CredentialStore,
        http: HttpClient,
        console: ConsoleProtocol,
        decisions: Decisions,
        refresh: RefreshFlags | None = None,
    ) -> None:
        self.store = store
        self.http = http
        self.console = console
        self.decisions = decisions
        self.refresh = refresh or RefreshFlags()

    def resolve(self) -> Result[ResolvedCredential, ReleaseError]:
        server = self._provider_type()
        if isinstance(server, Err):
            return server

        provider_result = create_provider(server.value, self.http)
        if isinstance(provider_result, Err):
            return provider_result
        provider = provider_result.value

        token = self._token(provider)
        if isinstance(token, Err):
            return token
        provider.set_token(token.value)

        user = provider.get_user()
        if isinstance(user, Err):
            return user
        orgs = provider.get_orgs(user.value.login)
        if isinstance(orgs, Err):
            return orgs
        self.console.debug(f"user: {user.value.login}, orgs: {[o.login for o in orgs.value]}")
        self.console.success(f"{provider.provider_type} user and organizations loaded")

        owner = self._owner(user.value.login, [o.login for o in orgs.value])
        if isinstance(owner, Err):
            return owner
        owner_kind, login = owner.value

        return Ok(
            ResolvedCredential(
                credential=Credential(
                    provider_type=provider.provider_type,
                    token=token.value,
                    owner_kind=owner_kind,
                    login_name=login,
                ),
                provider=provider,
            )
        )

    def publish_target(self) -> Result[PublishTarget, ReleaseError]:
        cached = self.store.read("publish")
        if cached in PUBLISH_TARGETS:
            self.console.success(f"publish target: {cached}")
            return Ok(cast(PublishTarget, cached))

        target = self.decisions.choose_publish_target(PUBLISH_TARGETS)
        if target is None:
            return Err(ReleaseError(kind="aborted", message="publish target selection cancelled"))
        written = self._save("publish", target)
        if isinstance(written, Err):
            return written
        return Ok(target)

    def _provider_type(self) -> Result[ProviderType, ReleaseError]:
        cached = self.store.read("server")
        if cached is not None and not self.refresh.server:
            self.console.success(f"repository host: {cached}")
            # Unknown values are reported by create_provider.
            return Ok(cast(ProviderType, cached))

        chosen = self.decisions.choose_provider()
        if chosen is None:
            return Err(ReleaseError(kind="aborted", message="repository host selection cancelled"))
        if chosen not in PROVIDER_TYPES:
            return Err(ReleaseError(kind="provider_init", message=f"unknown repository host: {chosen}"))
        written = self._save("server", chosen)
        if isinstance(written, Err):
            return written
        return Ok(chosen)

    def _token(self, provider: RepositoryProvider) -> Result[str, ReleaseError]:
        cached = self.store.read("token")
        if cached is not None and not self.refresh.token:
            self.console.success(f"token loaded from {self.store.path('token')}")
            return Ok(cached)

        url = provider.token_issuance_url()
        self.console.warning(f"no {provider.provider_type} token; create one at {url}")
        token = self.decisions.enter_token(provider.provider_type, url)
        if token is None or not token.strip():
            return Err(
                ReleaseError(
                    kind="aborted",
                    message="token entry cancelled",
                    hint=f"Create a token at {url}",
                )
            )
        token = token.strip()
        written = self._save("token", token, echo=False)
        if isinstance(written, Err):
            return written
        return Ok(token)

    def _owner(self, user_login: str, orgs: list[str]) -> Result[tuple[OwnerKind, str], ReleaseError]:
        cached_owner = self.store.read("owner")
        cached_login = self.store.read("login")
        if cached_owner in ("user", "org") and cached_login is not None and not self.refresh.owner:
            self.console.success(f"owner: {cached_owner} ({cached_login})")
            return Ok((cast(OwnerKind, cached_owner), cached_login))

        kind = self.decisions.choose_owner_kind(orgs_available=bool(orgs))
        if kind is None:
            return Err(ReleaseError(kind="aborted", message="owner selection cancelled"))

        if kind == "user":
            login = user_login
        else:
            if not orgs:
                return Err(
                    ReleaseError(kind="invalid_input", message="no organization available for this user")
                )
            chosen = self.decisions.choose_org(orgs)
            if chosen is None:
                return Err(ReleaseError(kind="aborted", message="organization selection cancelled"))
            if chosen not in orgs:
                return Err(ReleaseError(kind="invalid_input", message=f"unknown organization: {chosen}"))
            login = chosen

        for key, value in (("owner", kind), ("login", login)):
            written = self._save(cast(CredentialKey, key), value)
            if isinstance(written, Err):
                return written
        return Ok((kind, login))

    def _save(self, key: CredentialKey, value: str, *, echo: bool = True) -> Result[Path, ReleaseError]:
        written = self.store.write(key, value)
        if isinstance(written, Ok):
            shown = value if echo else "***"
            self.console.success(f"saved {key}: {shown} -> {written.value}")
        return written
