"""Tests for release/pipeline.py."""

from __future__ import annotations

from relflow.core.result import Err, Ok, Result
from relflow.output.console import MockConsole
from relflow.release.errors import ReleaseError
from relflow.release.pipeline import run_pipeline, step


class TestRunPipeline:
    def test_runs_steps_in_order(self) -> None:
        ran: list[str] = []

        def make(name: str):
            def action() -> Result[object, ReleaseError]:
                ran.append(name)
                return Ok(None)

            return action

        result = run_pipeline([step(n, make(n)) for n in ("a", "b", "c")], console=MockConsole())
        assert result == Ok(None)
        assert ran == ["a", "b", "c"]

    def test_stops_at_first_error(self) -> None:
        ran: list[str] = []
        error = ReleaseError(kind="conflict", message="conflicted files")

        def ok() -> Result[object, ReleaseError]:
            ran.append("ok")
            return Ok(None)

        def fail() -> Result[object, ReleaseError]:
            ran.append("fail")
            return Err(error)

        def never() -> Result[object, ReleaseError]:
            ran.append("never")
            return Ok(None)

        console = MockConsole()
        result = run_pipeline([step("ok", ok), step("fail", fail), step("never", never)], console=console)
        assert result == Err(error)
        assert ran == ["ok", "fail"]
        assert console.find("step failed: fail")

    def test_empty_pipeline(self) -> None:
        assert run_pipeline([], console=MockConsole()) == Ok(None)
