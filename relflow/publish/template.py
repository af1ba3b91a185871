"""index.html upload for history-router deployments.

When the app is served with HTML5 history routing, its entry page lives on
a separate web server. After a successful publish the freshly built
``index.html`` is fetched from the backend and copied there with scp.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from relflow.core.config import SshTarget
from relflow.core.result import Err, Ok, Result
from relflow.output.console import ConsoleProtocol, Style
from relflow.platform.files import atomic_write_text
from relflow.platform.process import run as run_process
from relflow.publish.preflight import TEMPLATE_FILE, PublishBackend
from relflow.release.errors import ReleaseError

if TYPE_CHECKING:
    from relflow.platform.http import HttpClient

__all__ = ["TemplateUploader"]

_SCP_TIMEOUT_SECONDS = 2 * 60.0


class TemplateUploader:
    def __init__(
        self,
        *,
        backend: PublishBackend,
        http: HttpClient,
        console: ConsoleProtocol,
        scratch_dir: Path,
        ssh: SshTarget,
    ) -> None:
        self.backend = backend
        self.http = http
        self.console = console
        self.scratch_dir = scratch_dir
        self.ssh = ssh

    def upload(self, name: str, version: str, *, prod: bool) -> Result[Path, ReleaseError]:
        """Download the published index.html and scp it to the web server."""
        self.console.info(f"downloading {TEMPLATE_FILE}")
        url = self.backend.template_url(name, prod=prod)
        if isinstance(url, Err):
            return url
        self.console.debug(f"template url: {url.value}")

        body = self.http.get_text(url.value)
        if isinstance(body, Err):
            return Err(ReleaseError(kind="network", message=f"cannot download {TEMPLATE_FILE}: {body.error}"))

        work_dir = self.scratch_dir / f"{name}@{version}"
        local = work_dir / TEMPLATE_FILE
        try:
            if work_dir.exists():
                shutil.rmtree(work_dir)
            atomic_write_text(local, body.value)
        except OSError as e:
            return Err(ReleaseError(kind="io_failed", message=f"cannot write {local}: {e}"))
        self.console.success(f"{TEMPLATE_FILE} saved to {local}")

        destination = f"{self.ssh.user}@{self.ssh.host}:{self.ssh.path}"
        cmd = ["scp", "-r", str(local), destination]
        self.console.print(" ".join(cmd), Style.DIM)
        try:
            copied = run_process(cmd, cwd=work_dir, timeout=_SCP_TIMEOUT_SECONDS)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)
        if isinstance(copied, Err):
            return Err(
                ReleaseError(
                    kind="network",
                    message=f"scp to {destination} failed",
                    hint=copied.error.detail or None,
                )
            )
        self.console.success(f"{TEMPLATE_FILE} uploaded to {destination}")
        return Ok(local)
