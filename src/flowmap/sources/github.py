"""GitHub REST tree source."""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from ..exceptions import AuthorizationError, ErrorCode, ExternalDependencyError
from ..logging_config import get_logger
from .base import FileEntry

logger = get_logger(__name__)

RAW_MEDIA_TYPE = "application/vnd.github.raw+json"
JSON_MEDIA_TYPE = "application/vnd.github+json"


class GitHubTreeSource:
    """Fetches commits, trees and blob contents from the GitHub REST API.

    A bearer token is sent when one is given. Private repositories answer 404
    to anonymous requests, so a 404 on the commit or tree lookup without a
    token is reported as an authorization failure.
    """

    def __init__(
        self,
        api_base_url: str = "https://api.github.com",
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def resolve_commit(self, repo: str, branch: str, access_token: Optional[str] = None) -> str:
        url = f"{self.api_base_url}/repos/{repo}/commits/{quote(branch, safe='')}"
        resp = self._get(url, access_token, JSON_MEDIA_TYPE, repo=repo, lookup=True)
        sha = resp.json().get("sha")
        if not sha:
            raise ExternalDependencyError(
                "Commit lookup returned no sha",
                context={"repo": repo, "branch": branch},
                retryable=False,
            )
        return sha

    def list_tree(
        self, repo: str, ref: str, access_token: Optional[str] = None
    ) -> list[FileEntry]:
        url = f"{self.api_base_url}/repos/{repo}/git/trees/{ref}"
        resp = self._get(
            url, access_token, JSON_MEDIA_TYPE, repo=repo, lookup=True, params={"recursive": "1"}
        )
        data = resp.json()
        if data.get("truncated"):
            logger.warning(f"GitHub returned a truncated tree for {repo}@{ref[:7]}")

        entries = []
        for item in data.get("tree", []):
            if item.get("type") not in ("blob", "tree"):
                continue  # submodule commits
            entries.append(
                FileEntry(
                    path=item["path"],
                    sha=item.get("sha", ""),
                    size=int(item.get("size") or 0),
                    type=item["type"],
                )
            )
        return entries

    def get_content(
        self, repo: str, ref: str, path: str, access_token: Optional[str] = None
    ) -> bytes:
        url = f"{self.api_base_url}/repos/{repo}/contents/{quote(path)}"
        resp = self._get(url, access_token, RAW_MEDIA_TYPE, repo=repo, params={"ref": ref})
        return resp.content

    def _get(
        self,
        url: str,
        access_token: Optional[str],
        accept: str,
        repo: str,
        lookup: bool = False,
        params: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        headers = _build_headers(access_token, accept)
        context: Dict[str, Any] = {"repo": repo, "url": url}
        try:
            resp = self._session.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise ExternalDependencyError(
                f"GitHub request timed out: {e}", code=ErrorCode.FM201, context=context
            )
        except requests.RequestException as e:
            raise ExternalDependencyError(f"GitHub unreachable: {e}", context=context)

        if resp.status_code < 300:
            return resp

        status = resp.status_code
        context["status"] = status
        if status == 401:
            raise AuthorizationError("GitHub rejected the access token", context=context)
        if status == 403:
            if "rate limit" in resp.text.lower():
                raise ExternalDependencyError(
                    "GitHub rate limit exceeded",
                    code=ErrorCode.FM202,
                    context=context,
                    status_code=status,
                )
            raise AuthorizationError("Access to the repository is forbidden", context=context)
        if status == 404:
            if lookup and not access_token:
                raise AuthorizationError(
                    "Repository not found or private; an access token is required",
                    context=context,
                )
            raise ExternalDependencyError(
                "GitHub resource not found",
                context=context,
                status_code=status,
                retryable=False,
            )
        raise ExternalDependencyError(
            f"GitHub returned HTTP {status}", context=context, status_code=status
        )


def _build_headers(access_token: Optional[str], accept: str) -> Dict[str, str]:
    headers = {
        "Accept": accept,
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers
