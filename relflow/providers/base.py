"""Base class for remote repository hosts.

A provider knows how to talk to one hosting service's REST API: who the
token belongs to, which organizations that user can publish under, and how
to find or create the project repository. Subclasses only describe the
host (base URL, auth scheme, endpoint paths); request plumbing and error
mapping live here.

Usage:
    provider = GithubProvider(RealHttpClient())
    provider.set_token(token)
    match provider.get_repo("octo", "my-app"):
        case Ok(None):
            provider.create_repo("my-app")
        case Ok(repo):
            print(repo.full_name)
        case Err(e):
            print(e.message)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from relflow.core.result import Err, Ok, Result
from relflow.core.structured import StrDict, as_obj_list, as_str_dict, get_str
from relflow.platform.http import HttpError, Params
from relflow.release.errors import ReleaseError
from relflow.release.model import ProviderType

if TYPE_CHECKING:
    from relflow.platform.http import HttpClient

__all__ = ["RemoteOrg", "RemoteRepo", "RemoteUser", "RepositoryProvider"]

ORG_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class RemoteUser:
    login: str


@dataclass(frozen=True, slots=True)
class RemoteOrg:
    login: str


@dataclass(frozen=True, slots=True)
class RemoteRepo:
    """Repository as reported by the host.

    Attributes:
        name: Repository name
        full_name: ``owner/name``
        ssh_url: SSH clone URL when the host reports one
    """

    name: str
    full_name: str
    ssh_url: str | None = None


class RepositoryProvider(ABC):
    """Capability contract shared by every hosting service.

    Subclasses must define:
    - provider_type: value stored in the credential cache
    - api_base: REST API root
    - _auth(): how the token travels (header or query parameter)
    - _orgs_path(): endpoint listing the user's organizations
    - remote_url() / token_issuance_url()
    """

    provider_type: ClassVar[ProviderType]
    api_base: ClassVar[str]

    def __init__(self, http: HttpClient) -> None:
        self.http = http
        self._token: str | None = None

    def set_token(self, token: str) -> None:
        self._token = token

    # -- REST ---------------------------------------------------------------

    def get_user(self) -> Result[RemoteUser, ReleaseError]:
        result = self._get("/user")
        if isinstance(result, Err):
            return Err(self._network_error("failed to fetch user", result.error))
        data = as_str_dict(result.value)
        login = get_str(data, "login") if data is not None else None
        if data is None or login is None:
            return Err(
                ReleaseError(kind="network", message=f"{self.provider_type}: unexpected user payload")
            )
        return Ok(RemoteUser(login=login))

    def get_orgs(self, login: str | None = None) -> Result[list[RemoteOrg], ReleaseError]:
        """Organizations the authenticated user belongs to (first page only)."""
        path = self._orgs_path(login)
        if path is None:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"{self.provider_type}: the user login is required to list organizations",
                )
            )
        result = self._get(path, params={"page": 1, "per_page": ORG_PAGE_SIZE})
        if isinstance(result, Err):
            return Err(self._network_error("failed to fetch organizations", result.error))
        items = as_obj_list(result.value)
        if items is None:
            return Err(
                ReleaseError(kind="network", message=f"{self.provider_type}: unexpected orgs payload")
            )
        orgs: list[RemoteOrg] = []
        for item in items:
            entry = as_str_dict(item)
            login_name = get_str(entry, "login") if entry is not None else None
            if login_name is not None:
                orgs.append(RemoteOrg(login=login_name))
        return Ok(orgs)

    def get_repo(self, owner: str, name: str) -> Result[RemoteRepo | None, ReleaseError]:
        """Look up ``owner/name``; Ok(None) when the host says it does not exist."""
        result = self._get(f"/repos/{owner}/{name}")
        if isinstance(result, Err):
            if result.error.is_not_found:
                return Ok(None)
            return Err(self._network_error(f"failed to fetch {owner}/{name}", result.error))
        repo = self._parse_repo(result.value)
        if repo is None:
            return Ok(None)
        return Ok(repo)

    def create_repo(self, name: str) -> Result[RemoteRepo, ReleaseError]:
        return self._create("/user/repos", name)

    def create_org_repo(self, owner: str, name: str) -> Result[RemoteRepo, ReleaseError]:
        return self._create(f"/orgs/{owner}/repos", name)

    # -- host description ---------------------------------------------------

    @abstractmethod
    def remote_url(self, owner: str, name: str) -> str:
        """SSH remote for ``owner/name``."""
        ...

    @abstractmethod
    def token_issuance_url(self) -> str:
        """Page where the user creates a personal access token."""
        ...

    @abstractmethod
    def _auth(self, token: str) -> tuple[dict[str, str], dict[str, str | int]]:
        """Headers and query parameters carrying ``token``."""
        ...

    @abstractmethod
    def _orgs_path(self, login: str | None) -> str | None:
        """Path listing organizations; None when ``login`` is required but missing."""
        ...

    def _create_headers(self) -> dict[str, str]:
        return {}

    # -- internals ----------------------------------------------------------

    def _require_token(self) -> str:
        if self._token is None:
            raise RuntimeError(f"{self.provider_type} provider used before set_token()")
        return self._token

    def _get(self, path: str, *, params: Params | None = None) -> Result[object, HttpError]:
        headers, auth_params = self._auth(self._require_token())
        return self.http.get_json(
            f"{self.api_base}{path}",
            params={**auth_params, **(params or {})},
            headers=headers,
        )

    def _post(self, path: str, body: Mapping[str, object]) -> Result[object, HttpError]:
        headers, auth_params = self._auth(self._require_token())
        return self.http.post_json(
            f"{self.api_base}{path}",
            body,
            params=auth_params,
            headers={**headers, **self._create_headers()},
        )

    def _create(self, path: str, name: str) -> Result[RemoteRepo, ReleaseError]:
        result = self._post(path, {"name": name})
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="repo_create_failed",
                    message=f"{self.provider_type}: failed to create repository {name}",
                    hint=result.error.message,
                )
            )
        repo = self._parse_repo(result.value)
        if repo is None:
            return Err(
                ReleaseError(
                    kind="repo_create_failed",
                    message=f"{self.provider_type}: repository {name} was not created",
                )
            )
        return Ok(repo)

    def _parse_repo(self, payload: object) -> RemoteRepo | None:
        # Some hosts answer 200 with an error body instead of 404.
        data: StrDict | None = as_str_dict(payload)
        if data is None:
            return None
        name = get_str(data, "name")
        full_name = get_str(data, "full_name")
        if name is None or full_name is None:
            return None
        return RemoteRepo(name=name, full_name=full_name, ssh_url=get_str(data, "ssh_url"))

    def _network_error(self, message: str, error: HttpError) -> ReleaseError:
        hint = None
        if error.status in (401, 403):
            hint = f"Check the token, or re-run with --refresh-token ({self.token_issuance_url()})"
        return ReleaseError(
            kind="network",
            message=f"{self.provider_type}: {message}: {error}",
            hint=hint,
        )
