"""Tests for relflow.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

from relflow.core.result import Err, Ok
from relflow.platform.process import ProcessError, run


class TestProcessError:
    """Test ProcessError dataclass."""

    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "status"), returncode=1, stdout="", stderr="fatal")
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("git", "push", "origin", "--delete", "dev/1.0.0"),
            returncode=1,
            stdout="",
            stderr="",
        )
        assert str(error) == "git push origin ... failed (exit 1)"

    def test_detail_prefers_stderr(self) -> None:
        assert ProcessError(("x",), 1, "out", " err ").detail == "err"
        assert ProcessError(("x",), 1, " out ", "").detail == "out"


class TestRun:
    """Test run function."""

    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
            cwd=tmp_path,
        )
        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert result.error.stderr == "bad"

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = run(["relflow-no-such-binary"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)
        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr
