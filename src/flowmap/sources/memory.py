"""In-memory tree source."""

from __future__ import annotations

from typing import Mapping, Optional, Union

from ..exceptions import AuthorizationError, ExternalDependencyError
from .base import FileEntry
from .local import git_blob_sha


class MemoryTreeSource:
    """Repository snapshots held in memory, keyed by ``(repo, branch)``.

    Call counters let callers check which operations ran.
    """

    def __init__(self, required_token: Optional[str] = None) -> None:
        self.required_token = required_token
        self._commits: dict[tuple[str, str], str] = {}
        self._files: dict[tuple[str, str], dict[str, bytes]] = {}
        self.calls = {"resolve_commit": 0, "list_tree": 0, "get_content": 0}

    def put(
        self,
        repo: str,
        branch: str,
        commit_sha: str,
        files: Mapping[str, Union[str, bytes]],
    ) -> None:
        """Publish a snapshot; replaces whatever the branch pointed to."""
        encoded = {
            path: content.encode("utf-8") if isinstance(content, str) else content
            for path, content in files.items()
        }
        self._commits[(repo, branch)] = commit_sha
        self._files[(repo, commit_sha)] = encoded

    def resolve_commit(self, repo: str, branch: str, access_token: Optional[str] = None) -> str:
        self.calls["resolve_commit"] += 1
        self._check_token(repo, access_token)
        try:
            return self._commits[(repo, branch)]
        except KeyError:
            raise ExternalDependencyError(
                f"Unknown branch {repo}@{branch}",
                context={"repo": repo, "branch": branch},
                status_code=404,
                retryable=False,
            )

    def list_tree(
        self, repo: str, ref: str, access_token: Optional[str] = None
    ) -> list[FileEntry]:
        self.calls["list_tree"] += 1
        self._check_token(repo, access_token)
        files = self._snapshot(repo, ref)
        return [
            FileEntry(path=path, sha=git_blob_sha(content), size=len(content))
            for path, content in sorted(files.items())
        ]

    def get_content(
        self, repo: str, ref: str, path: str, access_token: Optional[str] = None
    ) -> bytes:
        self.calls["get_content"] += 1
        self._check_token(repo, access_token)
        files = self._snapshot(repo, ref)
        if path not in files:
            raise ExternalDependencyError(
                f"No such file {path}",
                context={"repo": repo, "path": path},
                status_code=404,
                retryable=False,
            )
        return files[path]

    def _snapshot(self, repo: str, ref: str) -> dict[str, bytes]:
        try:
            return self._files[(repo, ref)]
        except KeyError:
            raise ExternalDependencyError(
                f"Unknown commit {repo}@{ref}",
                context={"repo": repo, "ref": ref},
                status_code=404,
                retryable=False,
            )

    def _check_token(self, repo: str, access_token: Optional[str]) -> None:
        if self.required_token and access_token != self.required_token:
            raise AuthorizationError("Access token required", context={"repo": repo})
