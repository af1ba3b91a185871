"""Development branch resolution.

Given the latest released version and the version in the working tree,
decide which ``dev/<version>`` branch to work on and whether the working
version must be bumped past the release.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from relflow.core.result import Err, Ok, Result
from relflow.release.errors import ReleaseError
from relflow.release.model import BumpClass, dev_branch
from relflow.release.semver import SemVer, parse_version

ChooseBump = Callable[[SemVer], BumpClass | None]


@dataclass(frozen=True, slots=True)
class Resolution:
    branch: str
    version: SemVer
    bumped: bool


def resolve_version(
    *,
    latest_release: SemVer | None,
    working_version: str,
    choose_bump: ChooseBump,
) -> Result[Resolution, ReleaseError]:
    """Resolve the target development branch.

    ``choose_bump`` is asked exactly once, and only when the working version
    is not ahead of the latest release. Returning None aborts.
    """
    working = parse_version(working_version)
    if working is None:
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"invalid project version: {working_version!r}",
                hint="Use a plain major.minor.patch version in package.json.",
            )
        )

    if latest_release is None or working > latest_release:
        return Ok(Resolution(branch=dev_branch(working), version=working, bumped=False))

    kind = choose_bump(latest_release)
    if kind is None:
        return Err(ReleaseError(kind="aborted", message="version bump cancelled"))

    bumped = latest_release.bump(kind)
    return Ok(Resolution(branch=dev_branch(bumped), version=bumped, bumped=True))
