"""Tests for release/semver.py."""

from __future__ import annotations

import pytest

from relflow.release.semver import SemVer, parse_version


class TestParseVersion:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1.2.3", SemVer(1, 2, 3)),
            ("0.0.0", SemVer(0, 0, 0)),
            ("v2.0.1", SemVer(2, 0, 1)),
            (" 10.20.30 ", SemVer(10, 20, 30)),
        ],
    )
    def test_valid(self, text: str, expected: SemVer) -> None:
        assert parse_version(text) == expected

    @pytest.mark.parametrize("text", ["", "1.2", "1.2.3.4", "01.2.3", "1.02.3", "a.b.c", "1.2.3-rc.1"])
    def test_invalid(self, text: str) -> None:
        assert parse_version(text) is None


class TestSemVer:
    def test_str(self) -> None:
        assert str(SemVer(1, 2, 3)) == "1.2.3"

    def test_ordering(self) -> None:
        assert SemVer(1, 10, 0) > SemVer(1, 9, 9)
        assert SemVer(2, 0, 0) > SemVer(1, 99, 99)
        assert SemVer(1, 2, 3) == SemVer(1, 2, 3)

    def test_bump_patch(self) -> None:
        assert SemVer(1, 2, 3).bump("patch") == SemVer(1, 2, 4)

    def test_bump_minor_resets_patch(self) -> None:
        assert SemVer(1, 2, 3).bump("minor") == SemVer(1, 3, 0)

    def test_bump_major_resets_minor_and_patch(self) -> None:
        assert SemVer(1, 2, 3).bump("major") == SemVer(2, 0, 0)

    @pytest.mark.parametrize("kind", ["patch", "minor", "major"])
    def test_every_bump_is_greater(self, kind: str) -> None:
        base = SemVer(3, 4, 5)
        assert base.bump(kind) > base  # type: ignore[arg-type]
