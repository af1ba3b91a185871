from __future__ import annotations

from relflow.core.result import Err, Ok, Result
from relflow.git.repository import DEFAULT_REMOTE, Repository
from relflow.output.console import ConsoleProtocol
from relflow.release.errors import ReleaseError
from relflow.release.model import ReleaseTag
from relflow.release.refs import parse_remote_versions
from relflow.release.semver import SemVer, parse_version
from relflow.services.gitops import git_failed, run_git


class TagLifecycleManager:
    """Create ``release/<version>`` tags, replacing any existing one.

    A tag is never moved in place: the old tag is deleted on the remote and
    locally, then recreated on HEAD and pushed. Running it twice leaves the
    same end state.
    """

    def __init__(self, *, repo: Repository, console: ConsoleProtocol) -> None:
        self.repo = repo
        self.console = console

    def ensure_tag(self, version: SemVer | str) -> Result[ReleaseTag, ReleaseError]:
        parsed = parse_version(str(version))
        if parsed is None:
            return Err(ReleaseError(kind="invalid_version", message=f"invalid version: {version}"))
        tag = ReleaseTag.for_version(parsed)
        self.console.info(f"creating tag {tag.name}")

        listing = self.repo.list_remote_refs()
        if isinstance(listing, Err):
            return Err(git_failed(listing.error, "failed to list remote tags"))
        if parsed in parse_remote_versions(listing.value, "release-tag"):
            removed = run_git(
                self.console,
                f"git push {DEFAULT_REMOTE} :refs/tags/{tag.name}",
                lambda: self.repo.delete_remote_tag(tag.name),
                message=f"failed to delete remote tag {tag.name}",
            )
            if isinstance(removed, Err):
                return removed

        local = self.repo.tags()
        if isinstance(local, Err):
            return Err(git_failed(local.error, "failed to list local tags"))
        if tag.name in local.value:
            removed = run_git(
                self.console,
                f"git tag -d {tag.name}",
                lambda: self.repo.delete_tag(tag.name),
                message=f"failed to delete local tag {tag.name}",
            )
            if isinstance(removed, Err):
                return removed

        created = run_git(
            self.console,
            f"git tag {tag.name}",
            lambda: self.repo.create_tag(tag.name),
            message=f"failed to create tag {tag.name}",
        )
        if isinstance(created, Err):
            return created

        pushed = run_git(
            self.console,
            f"git push {DEFAULT_REMOTE} --tags",
            self.repo.push_tags,
            message="failed to push tags",
        )
        if isinstance(pushed, Err):
            return pushed

        self.console.success(f"tag {tag.name} pushed")
        return Ok(tag)
