"""Top-level release sequence: prepare -> commit -> publish.

prepare
    load package.json, resolve credentials, make sure the remote repository
    exists, initialize the local repository on first use
commit
    bring ``dev/<version>`` up to date and push it
publish
    validate the build command, run the remote publish session, upload the
    history-router template, and for production releases tag the version and
    fold the development branch into main
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from relflow.core.config import Config
from relflow.core.result import Err, Ok, Result
from relflow.git.repository import Repository
from relflow.output.console import ConsoleProtocol
from relflow.platform.http import HttpClient
from relflow.providers import RepositoryProvider
from relflow.publish.preflight import PublishBackend, check_overwrite
from relflow.publish.protocol import PublishRequest
from relflow.publish.session import PublishSession
from relflow.publish.template import TemplateUploader
from relflow.release.decisions import Decisions
from relflow.release.errors import ReleaseError
from relflow.release.model import Credential, RepoContext, normalize_project_name
from relflow.release.pipeline import run_pipeline, step
from relflow.release.project import ProjectInfo, load_project, resolve_build_command
from relflow.services.branches import BranchCoordinator
from relflow.services.credentials import CredentialResolver, CredentialStore
from relflow.services.tags import TagLifecycleManager

__all__ = ["ReleaseOrchestrator", "ReleaseOutcome"]

SessionFactory = Callable[[PublishRequest], PublishSession]


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    name: str
    version: str
    branch: str
    tag: str | None = None


class ReleaseOrchestrator:
    def __init__(
        self,
        *,
        config: Config,
        source_dir: Path,
        console: ConsoleProtocol,
        decisions: Decisions,
        http: HttpClient,
        repo: Repository | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self.config = config
        self.source_dir = source_dir
        self.console = console
        self.decisions = decisions
        self.http = http
        self.repo = repo or Repository(source_dir)
        self.session_factory = session_factory or self._default_session

        self.credentials = CredentialResolver(
            store=CredentialStore(config.credential_dir),
            http=http,
            console=console,
            decisions=decisions,
            refresh=config.refresh,
        )
        self.branches = BranchCoordinator(repo=self.repo, console=console, decisions=decisions)
        self.tags = TagLifecycleManager(repo=self.repo, console=console)
        self.backend = PublishBackend(http=http, api_base_url=config.api_base_url)

        self.project: ProjectInfo | None = None
        self.ctx: RepoContext | None = None
        self.credential: Credential | None = None
        self.provider: RepositoryProvider | None = None
        self.tag: str | None = None

    def run(self) -> Result[ReleaseOutcome, ReleaseError]:
        result = run_pipeline(
            [
                step("prepare", self.prepare),
                step("commit", self.commit),
                step("publish", self.publish),
            ],
            console=self.console,
        )
        if isinstance(result, Err):
            return result
        ctx = self._context()
        return Ok(
            ReleaseOutcome(
                name=ctx.name,
                version=ctx.version,
                branch=ctx.current_branch or "",
                tag=self.tag,
            )
        )

    # -- prepare ------------------------------------------------------------

    def prepare(self) -> Result[None, ReleaseError]:
        return run_pipeline(
            [
                step("load project", self.load_context),
                step("credentials", self._resolve_credentials),
                step("remote repository", self.ensure_remote_repo),
                step("local repository", lambda: self.branches.initialize(self._context())),
            ],
            console=self.console,
        )

    def load_context(self) -> Result[RepoContext, ReleaseError]:
        project = load_project(self.source_dir)
        if isinstance(project, Err):
            return project
        self.project = project.value
        self.ctx = RepoContext(
            name=normalize_project_name(project.value.name),
            version=project.value.version,
            source_dir=self.source_dir,
        )
        self.console.success(f"project {self.ctx.name}@{self.ctx.version}")
        return Ok(self.ctx)

    def _resolve_credentials(self) -> Result[Credential, ReleaseError]:
        resolved = self.credentials.resolve()
        if isinstance(resolved, Err):
            return resolved
        self.credential = resolved.value.credential
        self.provider = resolved.value.provider
        return Ok(self.credential)

    def ensure_remote_repo(self) -> Result[str, ReleaseError]:
        """Look up ``<login>/<name>``, creating it when missing; returns the remote URL."""
        ctx = self._context()
        credential, provider = self._credential()
        login = credential.login_name

        found = provider.get_repo(login, ctx.name)
        if isinstance(found, Err):
            return found
        if found.value is None:
            self.console.info(f"creating remote repository {login}/{ctx.name}")
            if credential.owner_kind == "user":
                created = provider.create_repo(ctx.name)
            else:
                created = provider.create_org_repo(login, ctx.name)
            if isinstance(created, Err):
                return created
            self.console.success(f"remote repository {created.value.full_name} created")
        else:
            self.console.success(f"remote repository {found.value.full_name} found")

        ctx.remote_url = provider.remote_url(login, ctx.name)
        self.console.debug(f"remote: {ctx.remote_url}")
        return Ok(ctx.remote_url)

    # -- commit -------------------------------------------------------------

    def commit(self) -> Result[str, ReleaseError]:
        return self.branches.sync(self._context())

    # -- publish ------------------------------------------------------------

    def publish(self) -> Result[bool, ReleaseError]:
        ctx = self._context()
        credential, _ = self._credential()
        if self.project is None or ctx.current_branch is None:
            raise RuntimeError("publish requires prepare and commit to run first")

        self.console.info("checking build configuration")
        build_cmd = resolve_build_command(self.config.build_cmd, self.project.scripts)
        if isinstance(build_cmd, Err):
            return build_cmd
        self.console.success(f"build command: {build_cmd.value}")

        target = self.credentials.publish_target()
        if isinstance(target, Err):
            return target

        overwrite = check_overwrite(
            self.backend,
            name=ctx.name,
            prod=self.config.prod,
            console=self.console,
            decisions=self.decisions,
        )
        if isinstance(overwrite, Err):
            return overwrite

        request = PublishRequest(
            provider_type=credential.provider_type,
            login=credential.login_name,
            name=ctx.name,
            branch=ctx.current_branch,
            version=ctx.version,
            build_cmd=build_cmd.value,
            history_router=self.config.history_router,
            prod=self.config.prod,
        )
        published = asyncio.run(self.session_factory(request).run())
        if isinstance(published, Err):
            return published
        if not published.value:
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"publish of {ctx.name}@{ctx.version} failed",
                    hint="See the build output above.",
                )
            )
        self.console.success(f"{ctx.name}@{ctx.version} published")

        if self.config.ssh is not None:
            uploaded = TemplateUploader(
                backend=self.backend,
                http=self.http,
                console=self.console,
                scratch_dir=self.config.template_dir,
                ssh=self.config.ssh,
            ).upload(ctx.name, ctx.version, prod=self.config.prod)
            if isinstance(uploaded, Err):
                return uploaded

        if self.config.prod:
            finished = self._finish_release(ctx)
            if isinstance(finished, Err):
                return finished
        return Ok(True)

    def _finish_release(self, ctx: RepoContext) -> Result[None, ReleaseError]:
        tag = self.tags.ensure_tag(ctx.version)
        if isinstance(tag, Err):
            return tag
        self.tag = tag.value.name
        return self.branches.finish_release(ctx)

    # -- internals ----------------------------------------------------------

    def _default_session(self, request: PublishRequest) -> PublishSession:
        return PublishSession(
            server_url=self.config.publish_server_url,
            namespace=self.config.publish_namespace,
            request=request,
            console=self.console,
            connect_timeout=self.config.connect_timeout,
            publish_timeout=self.config.publish_timeout,
        )

    def _context(self) -> RepoContext:
        if self.ctx is None:
            raise RuntimeError("project context is not loaded")
        return self.ctx

    def _credential(self) -> tuple[Credential, RepositoryProvider]:
        if self.credential is None or self.provider is None:
            raise RuntimeError("credentials are not resolved")
        return self.credential, self.provider
