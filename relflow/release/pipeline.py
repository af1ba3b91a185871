from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from relflow.core.result import Err, Ok, Result
from relflow.output.console import ConsoleProtocol
from relflow.release.errors import ReleaseError

StepAction = Callable[[], Result[object, ReleaseError]]


@dataclass(frozen=True, slots=True)
class Step:
    name: str
    action: StepAction


def step(name: str, action: StepAction) -> Step:
    return Step(name=name, action=action)


def run_pipeline(
    steps: Sequence[Step],
    *,
    console: ConsoleProtocol,
) -> Result[None, ReleaseError]:
    """Run ``steps`` in order, stopping at the first Err.

    Each step's postcondition is the next step's precondition, so nothing
    after a failed step runs.
    """
    for current in steps:
        console.debug(f"step: {current.name}")
        outcome = current.action()
        if isinstance(outcome, Err):
            console.debug(f"step failed: {current.name} ({outcome.error.kind})")
            return outcome
    return Ok(None)
