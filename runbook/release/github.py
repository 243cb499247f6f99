"""GitHub implementation of the release host gateway.

Every payload is decoded here, at the boundary: the orchestrator only ever
sees ``ServiceStatus`` and ``PublishSummary`` values, never raw JSON.
"""

from __future__ import annotations

import json
import re

from runbook.core.result import Err, Ok, Result
from runbook.core.structured import as_obj_list, as_str_dict, get_str
from runbook.platform.http import HttpClient, HttpResponse
from runbook.release.gateways import (
    HostTransportError,
    PublishItem,
    PublishSummary,
    ReleaseDraft,
    ServiceStatus,
)

GITHUB_API_URL = "https://api.github.com"

_SLUG_RE = re.compile(
    r"^(?:git@github\.com:|ssh://git@github\.com/|https?://(?:[^@/]+@)?github\.com/)"
    r"(?P<owner>[\w.-]+)/(?P<name>[\w.-]+?)(?:\.git)?/?$"
)


def parse_repo_slug(url: str) -> str | None:
    """``owner/name`` from a GitHub remote URL, or None for other hosts."""
    m = _SLUG_RE.match(url.strip())
    if m is None:
        return None
    return f"{m.group('owner')}/{m.group('name')}"


def decode_service_status(
    body: object, *, depth: int = 0
) -> Result[ServiceStatus, HostTransportError]:
    """Normalise a status payload to ``ServiceStatus``.

    Accepts the legacy ``{"status": "good"}`` document, the statuspage
    ``{"status": {"indicator": "none", "description": ...}}`` document, and
    either of them JSON-encoded as a string.
    """
    if isinstance(body, str):
        if depth >= 2:
            return Err(HostTransportError(message=f"unexpected status payload: {body[:200]}"))
        try:
            parsed: object = json.loads(body)
        except json.JSONDecodeError as e:
            return Err(HostTransportError(message=f"status payload is not JSON: {e}"))
        return decode_service_status(parsed, depth=depth + 1)

    data = as_str_dict(body)
    if data is None:
        return Err(HostTransportError(message="status payload is not a JSON object"))

    legacy = get_str(data, "status")
    if legacy is not None:
        return Ok(ServiceStatus(status=legacy))

    page = as_str_dict(data.get("status"))
    indicator = get_str(page, "indicator") if page is not None else None
    if page is None or indicator is None:
        return Err(HostTransportError(message="status payload has no status field"))

    return Ok(
        ServiceStatus(
            status="good" if indicator == "none" else indicator,
            detail=get_str(page, "description"),
        )
    )


def _error_reasons(response: HttpResponse) -> tuple[str, ...]:
    data = as_str_dict(response.body)
    if data is None:
        text = response.body.strip() if isinstance(response.body, str) else ""
        return (f"HTTP {response.status}" + (f": {text}" if text else ""),)

    reasons: list[str] = []
    message = get_str(data, "message")
    reasons.append(f"HTTP {response.status}: {message}" if message else f"HTTP {response.status}")

    for raw in as_obj_list(data.get("errors")) or []:
        if isinstance(raw, str):
            reasons.append(raw)
            continue
        item = as_str_dict(raw)
        if item is None:
            continue
        detail = get_str(item, "message")
        if detail is None:
            where = ".".join(p for p in (get_str(item, "resource"), get_str(item, "field")) if p)
            detail = " ".join(p for p in (where, get_str(item, "code")) if p) or None
        if detail:
            reasons.append(detail)

    return tuple(reasons)


def decode_publish_response(tag: str, response: HttpResponse) -> PublishItem:
    if response.ok:
        data = as_str_dict(response.body) or {}
        return PublishItem(tag=tag, state="fulfilled", url=get_str(data, "html_url"))
    return PublishItem(tag=tag, state="rejected", reasons=_error_reasons(response))


class GitHubHost:
    """Release host backed by the GitHub REST API."""

    def __init__(
        self,
        *,
        http: HttpClient,
        token: str | None,
        repository: str | None,
        status_url: str,
        api_url: str = GITHUB_API_URL,
    ) -> None:
        self._http = http
        self._token = token
        self._repository = repository
        self._status_url = status_url
        self._api_url = api_url.rstrip("/")

    def check_service_status(self) -> Result[ServiceStatus, HostTransportError]:
        result = self._http.get_text(self._status_url)
        if isinstance(result, Err):
            return Err(HostTransportError(message=str(result.error)))
        return decode_service_status(result.value)

    def publish_release(
        self, drafts: tuple[ReleaseDraft, ...]
    ) -> Result[PublishSummary, HostTransportError]:
        if not self._token:
            return Err(HostTransportError(message="no GitHub token configured"))
        if not self._repository:
            return Err(
                HostTransportError(
                    message="GitHub repository unknown (set github.repository in runbook.toml)"
                )
            )

        url = f"{self._api_url}/repos/{self._repository}/releases"
        headers = {
            "Authorization": f"token {self._token}",
            "Accept": "application/vnd.github+json",
        }

        items: list[PublishItem] = []
        for draft in drafts:
            payload = {
                "tag_name": draft.tag,
                "name": draft.name,
                "body": draft.body,
                "draft": False,
                "prerelease": False,
            }
            result = self._http.post_json(url, payload, headers)
            if isinstance(result, Err):
                return Err(HostTransportError(message=str(result.error)))
            items.append(decode_publish_response(draft.tag, result.value))

        return Ok(PublishSummary(items=tuple(items)))
