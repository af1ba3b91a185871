from __future__ import annotations

import time
from pathlib import Path

import typer

from relflow.cli.commands._helpers import exit_release
from relflow.cli.context import build_context
from relflow.core.config import Config, RefreshFlags, SshTarget
from relflow.core.errors import ErrorCode
from relflow.core.result import Err
from relflow.output.console import Style
from relflow.services.orchestrator import ReleaseOrchestrator


def publish(
    refresh_server: bool = typer.Option(False, "--refresh-server", help="Pick the repository host again."),
    refresh_token: bool = typer.Option(False, "--refresh-token", help="Enter a new access token."),
    refresh_owner: bool = typer.Option(False, "--refresh-owner", help="Pick the repository owner again."),
    build_cmd: str | None = typer.Option(None, "--build-cmd", help="Build command (default: npm run build)."),
    prod: bool = typer.Option(False, "--prod", help="Production release: tag and merge into main."),
    ssh_user: str | None = typer.Option(None, "--ssh-user", help="User for the index.html upload."),
    ssh_ip: str | None = typer.Option(None, "--ssh-ip", help="Host for the index.html upload."),
    ssh_path: str | None = typer.Option(None, "--ssh-path", help="Remote directory for index.html."),
    debug: bool = typer.Option(False, "--debug", help="Print diagnostic output."),
    directory: Path | None = typer.Option(
        None,
        "--dir",
        help="Project directory (default: current directory).",
    ),
) -> None:
    """Commit to the development branch and publish it through the build service."""
    started = time.monotonic()

    ssh: SshTarget | None = None
    ssh_parts = (ssh_user, ssh_ip, ssh_path)
    if all(ssh_parts):
        ssh = SshTarget(user=ssh_user or "", host=ssh_ip or "", path=ssh_path or "")
    elif any(ssh_parts):
        typer.echo("error: --ssh-user, --ssh-ip and --ssh-path go together", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    config = Config.from_env(
        debug=debug,
        refresh=RefreshFlags(server=refresh_server, token=refresh_token, owner=refresh_owner),
        build_cmd=build_cmd,
        prod=prod,
        ssh=ssh,
    )
    ctx = build_context(config)

    source_dir = (directory or Path.cwd()).expanduser().resolve()
    if not source_dir.is_dir():
        typer.echo(f"error: not a directory: {source_dir}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    orchestrator = ReleaseOrchestrator(
        config=ctx.config,
        source_dir=source_dir,
        console=ctx.console,
        decisions=ctx.decisions,
        http=ctx.http,
    )
    result = orchestrator.run()
    if isinstance(result, Err):
        exit_release(result.error, ctx.console)

    outcome = result.value
    elapsed = time.monotonic() - started
    ctx.console.success(f"{outcome.name}@{outcome.version} released from {outcome.branch}")
    if outcome.tag:
        ctx.console.print(f"tag: {outcome.tag}", Style.DIM)
    ctx.console.print(f"done in {elapsed:.1f}s", Style.DIM)
