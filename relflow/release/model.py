from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

BumpClass = Literal["patch", "minor", "major"]
ProviderType = Literal["github", "gitee"]
OwnerKind = Literal["user", "org"]
PublishTarget = Literal["oss"]

BUMP_CLASSES: tuple[BumpClass, ...] = ("patch", "minor", "major")
PROVIDER_TYPES: tuple[ProviderType, ...] = ("github", "gitee")
PUBLISH_TARGETS: tuple[PublishTarget, ...] = ("oss",)

RELEASE_PREFIX = "release"
DEVELOP_PREFIX = "dev"
MAIN_BRANCH = "main"


def dev_branch(version: object) -> str:
    return f"{DEVELOP_PREFIX}/{version}"


def release_tag_name(version: object) -> str:
    return f"{RELEASE_PREFIX}/{version}"


def normalize_project_name(name: str) -> str:
    """Turn a scoped npm name (``@scope/pkg``) into a repo name (``scope_pkg``)."""
    if name.startswith("@") and name.find("/") > 0:
        return "_".join(name.split("/")).replace("@", "", 1)
    return name


@dataclass(slots=True)
class RepoContext:
    """Per-invocation project state.

    ``version`` and ``current_branch`` change while the development branch is
    resolved; everything else is fixed once the context is created.
    """

    name: str
    version: str
    source_dir: Path
    current_branch: str | None = None
    remote_url: str | None = None


@dataclass(frozen=True, slots=True)
class Credential:
    provider_type: ProviderType
    token: str
    owner_kind: OwnerKind
    login_name: str


@dataclass(frozen=True, slots=True)
class ReleaseTag:
    name: str

    @classmethod
    def for_version(cls, version: object) -> ReleaseTag:
        return cls(name=release_tag_name(version))
