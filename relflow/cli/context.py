from __future__ import annotations

from dataclasses import dataclass

from relflow.cli.decisions import PromptDecisions
from relflow.core.config import Config
from relflow.output.console import ConsoleProtocol, RichConsole
from relflow.platform.http import HttpClient, RealHttpClient
from relflow.release.decisions import Decisions


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol
    decisions: Decisions
    http: HttpClient


def build_context(config: Config) -> CLIContext:
    console = RichConsole(debug=config.debug)
    console.debug(f"home: {config.home}")
    return CLIContext(
        config=config,
        console=console,
        decisions=PromptDecisions(console),
        http=RealHttpClient(timeout=config.http_timeout),
    )
