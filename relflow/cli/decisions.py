"""Interactive answers to the questions asked by release services."""

from __future__ import annotations

from collections.abc import Sequence

import typer

from relflow.output.console import ConsoleProtocol, Style
from relflow.release.model import (
    BUMP_CLASSES,
    PROVIDER_TYPES,
    BumpClass,
    OwnerKind,
    ProviderType,
    PublishTarget,
)
from relflow.release.semver import SemVer

_CANCEL = "q"


class PromptDecisions:
    """Decisions backed by terminal prompts; typing ``q`` cancels a choice."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self.console = console

    def choose_bump(self, latest: SemVer) -> BumpClass | None:
        labels = [f"{kind} ({latest} -> {latest.bump(kind)})" for kind in BUMP_CLASSES]
        idx = self._pick("Local version is not ahead of the latest release; bump", labels)
        return None if idx is None else BUMP_CLASSES[idx]

    def commit_message(self) -> str | None:
        return typer.prompt("Commit message", default="", show_default=False)

    def choose_provider(self) -> ProviderType | None:
        idx = self._pick("Repository host", list(PROVIDER_TYPES))
        return None if idx is None else PROVIDER_TYPES[idx]

    def enter_token(self, provider: ProviderType, issuance_url: str) -> str | None:
        self.console.print(f"create a {provider} token at {issuance_url}", Style.DIM)
        token: str = typer.prompt(f"{provider} token", hide_input=True, default="", show_default=False)
        return token.strip() or None

    def choose_owner_kind(self, *, orgs_available: bool) -> OwnerKind | None:
        kinds: list[OwnerKind] = ["user", "org"] if orgs_available else ["user"]
        if len(kinds) == 1:
            return kinds[0]
        idx = self._pick("Create the repository under", ["your user", "an organization"])
        return None if idx is None else kinds[idx]

    def choose_org(self, orgs: Sequence[str]) -> str | None:
        idx = self._pick("Organization", list(orgs))
        return None if idx is None else orgs[idx]

    def choose_publish_target(self, targets: Sequence[PublishTarget]) -> PublishTarget | None:
        if len(targets) == 1:
            return targets[0]
        idx = self._pick("Publish target", list(targets))
        return None if idx is None else targets[idx]

    def confirm_overwrite(self, project: str) -> bool:
        return typer.confirm(f"Overwrite the published project {project}?", default=True)

    def _pick(self, title: str, options: list[str]) -> int | None:
        self.console.header(title)
        for i, label in enumerate(options, start=1):
            self.console.print(f"{i:2}. {label}", Style.DIM)

        while True:
            raw = typer.prompt(f"Pick a number ({_CANCEL} to cancel)", default="1")
            if raw.strip().lower() == _CANCEL:
                return None
            try:
                idx = int(raw)
            except ValueError:
                self.console.error("invalid number")
                continue
            if idx < 1 or idx > len(options):
                self.console.error("out of range")
                continue
            return idx - 1
