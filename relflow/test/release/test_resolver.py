"""Tests for release/resolver.py."""

from __future__ import annotations

import pytest

from relflow.core.result import Err, Ok
from relflow.release.model import BumpClass
from relflow.release.resolver import resolve_version
from relflow.release.semver import SemVer


class _Chooser:
    def __init__(self, answer: BumpClass | None) -> None:
        self.answer = answer
        self.asked: list[SemVer] = []

    def __call__(self, latest: SemVer) -> BumpClass | None:
        self.asked.append(latest)
        return self.answer


class TestResolveVersion:
    def test_no_release_keeps_working_version(self) -> None:
        chooser = _Chooser("major")
        result = resolve_version(latest_release=None, working_version="0.1.0", choose_bump=chooser)
        assert isinstance(result, Ok)
        assert result.value.branch == "dev/0.1.0"
        assert result.value.bumped is False
        assert chooser.asked == []

    def test_no_release_is_idempotent(self) -> None:
        first = resolve_version(latest_release=None, working_version="0.1.0", choose_bump=_Chooser(None))
        second = resolve_version(latest_release=None, working_version="0.1.0", choose_bump=_Chooser(None))
        assert first == second

    def test_working_ahead_of_release(self) -> None:
        chooser = _Chooser("patch")
        result = resolve_version(
            latest_release=SemVer(1, 2, 0), working_version="1.2.1", choose_bump=chooser
        )
        assert isinstance(result, Ok)
        assert result.value.branch == "dev/1.2.1"
        assert result.value.bumped is False
        assert chooser.asked == []

    def test_equal_to_release_requires_bump(self) -> None:
        chooser = _Chooser("minor")
        result = resolve_version(
            latest_release=SemVer(1, 2, 0), working_version="1.2.0", choose_bump=chooser
        )
        assert isinstance(result, Ok)
        assert result.value.branch == "dev/1.3.0"
        assert result.value.version == SemVer(1, 3, 0)
        assert result.value.bumped is True
        assert chooser.asked == [SemVer(1, 2, 0)]

    @pytest.mark.parametrize("kind", ["patch", "minor", "major"])
    def test_bumped_version_exceeds_release(self, kind: BumpClass) -> None:
        latest = SemVer(2, 5, 9)
        result = resolve_version(latest_release=latest, working_version="1.0.0", choose_bump=_Chooser(kind))
        assert isinstance(result, Ok)
        assert result.value.version > latest
        assert result.value.branch == f"dev/{result.value.version}"

    def test_cancelled_bump_aborts(self) -> None:
        result = resolve_version(
            latest_release=SemVer(1, 0, 0), working_version="1.0.0", choose_bump=_Chooser(None)
        )
        assert isinstance(result, Err)
        assert result.error.kind == "aborted"

    def test_invalid_working_version(self) -> None:
        result = resolve_version(latest_release=None, working_version="1.0", choose_bump=_Chooser("patch"))
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_version"
