"""Decision port for the few points where a human has to choose.

Core services never prompt directly. They call a ``Decisions`` object; the
CLI provides an interactive implementation and tests provide
``ScriptedDecisions``. Returning None from any question means the user
cancelled, which aborts the current step.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from relflow.release.model import BumpClass, OwnerKind, ProviderType, PublishTarget
from relflow.release.semver import SemVer

__all__ = ["Decisions", "ScriptedDecisions"]


class Decisions(Protocol):
    def choose_bump(self, latest: SemVer) -> BumpClass | None:
        """Pick how to increment ``latest`` for the next development version."""
        ...

    def commit_message(self) -> str | None:
        """Ask for the message of the auto-commit of pending changes."""
        ...

    def choose_provider(self) -> ProviderType | None: ...

    def enter_token(self, provider: ProviderType, issuance_url: str) -> str | None: ...

    def choose_owner_kind(self, *, orgs_available: bool) -> OwnerKind | None: ...

    def choose_org(self, orgs: Sequence[str]) -> str | None: ...

    def choose_publish_target(self, targets: Sequence[PublishTarget]) -> PublishTarget | None: ...

    def confirm_overwrite(self, project: str) -> bool:
        """Confirm replacing an already published production project."""
        ...


def _empty_questions() -> list[str]:
    return []


@dataclass
class ScriptedDecisions:
    """Decisions with canned answers, recording every question asked.

    ``commit_messages`` is consumed in order, which lets tests exercise the
    re-prompt loop on empty messages.
    """

    bump: BumpClass | None = "patch"
    commit_messages: list[str | None] = field(default_factory=lambda: ["wip"])
    provider: ProviderType | None = "github"
    token: str | None = "token"
    owner_kind: OwnerKind | None = "user"
    org: str | None = None
    publish_target: PublishTarget | None = "oss"
    overwrite: bool = True
    asked: list[str] = field(default_factory=_empty_questions)

    def choose_bump(self, latest: SemVer) -> BumpClass | None:
        self.asked.append(f"bump:{latest}")
        return self.bump

    def commit_message(self) -> str | None:
        self.asked.append("commit_message")
        if not self.commit_messages:
            return None
        return self.commit_messages.pop(0)

    def choose_provider(self) -> ProviderType | None:
        self.asked.append("provider")
        return self.provider

    def enter_token(self, provider: ProviderType, issuance_url: str) -> str | None:
        self.asked.append(f"token:{provider}")
        return self.token

    def choose_owner_kind(self, *, orgs_available: bool) -> OwnerKind | None:
        self.asked.append(f"owner_kind:{orgs_available}")
        return self.owner_kind

    def choose_org(self, orgs: Sequence[str]) -> str | None:
        self.asked.append("org")
        return self.org if self.org is not None else (orgs[0] if orgs else None)

    def choose_publish_target(self, targets: Sequence[PublishTarget]) -> PublishTarget | None:
        self.asked.append("publish_target")
        return self.publish_target

    def confirm_overwrite(self, project: str) -> bool:
        self.asked.append(f"overwrite:{project}")
        return self.overwrite
