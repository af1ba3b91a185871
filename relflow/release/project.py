"""package.json access: project metadata, build command checks, version sync."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from relflow.core.result import Err, Ok, Result
from relflow.core.structured import StrDict, as_str_dict, get_str, get_table
from relflow.platform.files import atomic_write_text
from relflow.release.errors import ReleaseError

PROJECT_FILE = "package.json"
DEFAULT_BUILD_CMD = "npm run build"
_ALLOWED_RUNNERS = frozenset({"npm", "cnpm"})


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    name: str
    version: str
    source_dir: Path
    scripts: tuple[str, ...]


def _read(source_dir: Path) -> Result[StrDict, ReleaseError]:
    path = source_dir / PROJECT_FILE
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(
            ReleaseError(
                kind="missing_project",
                message=f"{PROJECT_FILE} not found in {source_dir}",
            )
        )
    except OSError as e:
        return Err(ReleaseError(kind="io_failed", message=f"cannot read {path}: {e}"))

    try:
        obj: object = json.loads(raw)
    except json.JSONDecodeError as e:
        return Err(ReleaseError(kind="missing_project", message=f"invalid {PROJECT_FILE}: {e}"))

    data = as_str_dict(obj)
    if data is None:
        return Err(
            ReleaseError(kind="missing_project", message=f"{PROJECT_FILE} must be a JSON object")
        )
    return Ok(data)


def load_project(source_dir: Path) -> Result[ProjectInfo, ReleaseError]:
    """Load name, version and scripts; a ``build`` script is required."""
    result = _read(source_dir)
    if isinstance(result, Err):
        return result
    data = result.value

    name = get_str(data, "name")
    version = get_str(data, "version")
    scripts = get_table(data, "scripts") or {}
    if name is None or version is None or "build" not in scripts:
        return Err(
            ReleaseError(
                kind="missing_project",
                message=f"{PROJECT_FILE} is incomplete",
                hint="name, version and scripts.build are required",
            )
        )

    return Ok(
        ProjectInfo(
            name=name,
            version=version,
            source_dir=source_dir,
            scripts=tuple(scripts.keys()),
        )
    )


def resolve_build_command(
    build_cmd: str | None,
    scripts: tuple[str, ...],
) -> Result[str, ReleaseError]:
    """Validate the build command sent to the publish backend.

    The command must run through npm or cnpm, and its last word must name
    a script declared in package.json.
    """
    cmd = " ".join((build_cmd or DEFAULT_BUILD_CMD).split())
    words = cmd.split(" ")
    if words[0] not in _ALLOWED_RUNNERS:
        return Err(
            ReleaseError(
                kind="invalid_build_command",
                message=f"invalid build command: {cmd}",
                hint="The build command must start with npm or cnpm.",
            )
        )
    if words[-1] not in scripts:
        return Err(
            ReleaseError(
                kind="invalid_build_command",
                message=f"build script not found: {words[-1]}",
                hint=f"Add '{words[-1]}' to the scripts in {PROJECT_FILE}.",
            )
        )
    return Ok(cmd)


def sync_version(source_dir: Path, version: str) -> Result[bool, ReleaseError]:
    """Write ``version`` into package.json; Ok(False) when already equal."""
    result = _read(source_dir)
    if isinstance(result, Err):
        return result
    data = result.value
    if data.get("version") == version:
        return Ok(False)

    data["version"] = version
    path = source_dir / PROJECT_FILE
    try:
        atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    except OSError as e:
        return Err(ReleaseError(kind="io_failed", message=f"cannot write {path}: {e}"))
    return Ok(True)
