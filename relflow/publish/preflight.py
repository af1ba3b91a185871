"""Publish backend REST calls made before and after a publish session.

Responses share the envelope ``{code, data}``; ``code == 0`` means success.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relflow.core.result import Err, Ok, Result
from relflow.core.structured import as_obj_list, as_str_dict, dig, get_int, get_str
from relflow.output.console import ConsoleProtocol
from relflow.release.decisions import Decisions
from relflow.release.errors import ReleaseError

if TYPE_CHECKING:
    from relflow.platform.http import HttpClient

__all__ = ["PublishBackend", "check_overwrite"]

TEMPLATE_FILE = "index.html"


def _target_type(prod: bool) -> str:
    return "prod" if prod else "dev"


class PublishBackend:
    def __init__(self, *, http: HttpClient, api_base_url: str) -> None:
        self.http = http
        self.api_base_url = api_base_url.rstrip("/")

    def project_exists(self, name: str, *, prod: bool) -> Result[bool, ReleaseError]:
        """True when the target storage already holds files for ``name``."""
        url = f"{self.api_base_url}/project/getOssTargetProject"
        result = self.http.get_json(url, params={"name": name, "type": _target_type(prod)})
        if isinstance(result, Err):
            return Err(ReleaseError(kind="network", message=f"publish backend: {result.error}"))
        body = as_str_dict(result.value)
        if body is None or get_int(body, "code") != 0:
            return Ok(False)
        files = as_obj_list(body.get("data"))
        return Ok(bool(files))

    def template_url(self, name: str, *, prod: bool) -> Result[str, ReleaseError]:
        """Download URL of the published ``index.html``."""
        url = f"{self.api_base_url}/project/getOssTargetFile"
        result = self.http.get_json(
            url,
            params={"name": name, "type": _target_type(prod), "file": TEMPLATE_FILE},
        )
        if isinstance(result, Err):
            return Err(ReleaseError(kind="network", message=f"publish backend: {result.error}"))
        body = as_str_dict(result.value)
        if body is not None and get_int(body, "code") == 0:
            file_url = dig(body, "data", "url")
        else:
            file_url = None
        if not isinstance(file_url, str) or not file_url:
            return Err(
                ReleaseError(
                    kind="network",
                    message=f"publish backend has no {TEMPLATE_FILE} for {name}",
                    hint=get_str(body, "msg") if body is not None else None,
                )
            )
        return Ok(file_url)


def check_overwrite(
    backend: PublishBackend,
    *,
    name: str,
    prod: bool,
    console: ConsoleProtocol,
    decisions: Decisions,
) -> Result[None, ReleaseError]:
    """Ask before replacing an existing production project; declining aborts."""
    if not prod:
        return Ok(None)
    exists = backend.project_exists(name, prod=prod)
    if isinstance(exists, Err):
        return exists
    if not exists.value:
        console.debug(f"no published project named {name}")
        return Ok(None)

    console.warning(f"project {name} is already published")
    if not decisions.confirm_overwrite(name):
        return Err(ReleaseError(kind="aborted", message="publish cancelled"))
    return Ok(None)
