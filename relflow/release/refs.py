"""Parsing of raw `git ls-remote --refs` listings.

Pure functions: no git calls, no network. Callers fetch the listing once and
derive both tag and branch version sets from it.
"""

from __future__ import annotations

import re
from typing import Literal

from relflow.release.model import DEVELOP_PREFIX, RELEASE_PREFIX
from relflow.release.semver import SemVer, parse_version

RefKind = Literal["release-tag", "dev-branch"]

_PATTERNS: dict[RefKind, re.Pattern[str]] = {
    "release-tag": re.compile(rf"refs/tags/{RELEASE_PREFIX}/(\d+\.\d+\.\d+)$"),
    "dev-branch": re.compile(rf"refs/heads/{DEVELOP_PREFIX}/(\d+\.\d+\.\d+)$"),
}


def _ref_of(line: str) -> str:
    # ls-remote lines are "<sha>\t<ref>"; tolerate bare refs too.
    parts = line.strip().split()
    return parts[-1] if parts else ""


def parse_remote_versions(listing: str, kind: RefKind) -> tuple[SemVer, ...]:
    """Extract the versions of ``kind`` refs, highest first.

    Lines that do not match, and versions that are not valid semantic
    versions (e.g. leading zeros), are skipped. Duplicates collapse.
    """
    pattern = _PATTERNS[kind]
    found: set[SemVer] = set()
    for line in listing.splitlines():
        m = pattern.search(_ref_of(line))
        if m is None:
            continue
        version = parse_version(m.group(1))
        if version is not None:
            found.add(version)
    return tuple(sorted(found, reverse=True))


def latest_version(listing: str, kind: RefKind) -> SemVer | None:
    versions = parse_remote_versions(listing, kind)
    return versions[0] if versions else None


def has_ref(listing: str, ref: str) -> bool:
    """True when the fully-qualified ``ref`` (e.g. ``refs/heads/main``) is listed."""
    return any(_ref_of(line) == ref for line in listing.splitlines())
