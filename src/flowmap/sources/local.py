"""Tree source over a local checkout."""

from __future__ import annotations

import hashlib
import os
import subprocess
from pathlib import Path
from typing import Optional

from ..exceptions import ExternalDependencyError, ValidationError
from ..logging_config import get_logger
from .base import FileEntry

logger = get_logger(__name__)

SKIP_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".next",
        ".nuxt",
        ".output",
        ".svelte-kit",
        ".turbo",
        ".cache",
        "dist",
        "build",
        "out",
        "coverage",
        "vendor",
        "__pycache__",
    }
)


def git_blob_sha(content: bytes) -> str:
    """SHA-1 of ``content`` the way git hashes a blob object."""
    header = f"blob {len(content)}\0".encode()
    return hashlib.sha1(header + content).hexdigest()


class LocalTreeSource:
    """Serves a directory as if it were a repository snapshot.

    ``repo`` arguments are ignored; the root directory is the repository.
    """

    def __init__(self, root: Path, allow_hidden: bool = False) -> None:
        self.root = Path(root)
        self.allow_hidden = allow_hidden
        if not self.root.is_dir():
            raise ValidationError(
                f"Not a directory: {self.root}", context={"path": str(self.root)}
            )
        self._entries: Optional[list[FileEntry]] = None

    def resolve_commit(self, repo: str, branch: str, access_token: Optional[str] = None) -> str:
        head = self._git_head()
        if head:
            return head
        digest = hashlib.sha1()
        for entry in self._scan():
            digest.update(f"{entry.path}\0{entry.sha}\n".encode())
        return digest.hexdigest()

    def list_tree(
        self, repo: str, ref: str, access_token: Optional[str] = None
    ) -> list[FileEntry]:
        return list(self._scan())

    def get_content(
        self, repo: str, ref: str, path: str, access_token: Optional[str] = None
    ) -> bytes:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValidationError(f"Path escapes the checkout: {path}", context={"path": path})
        try:
            return target.read_bytes()
        except OSError as e:
            raise ExternalDependencyError(
                f"Cannot read {path}: {e}", context={"path": path}, retryable=False
            )

    def _scan(self) -> list[FileEntry]:
        if self._entries is not None:
            return self._entries

        entries: list[FileEntry] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(
                d
                for d in dirnames
                if d not in SKIP_DIRS and (self.allow_hidden or not d.startswith("."))
            )
            for name in sorted(filenames):
                if not self.allow_hidden and name.startswith("."):
                    continue
                full = Path(dirpath) / name
                if full.is_symlink() or not full.is_file():
                    continue
                try:
                    content = full.read_bytes()
                except OSError as e:
                    logger.debug(f"Cannot read {full}: {e}")
                    continue
                rel = full.relative_to(self.root).as_posix()
                entries.append(FileEntry(path=rel, sha=git_blob_sha(content), size=len(content)))

        entries.sort(key=lambda e: e.path)
        self._entries = entries
        return entries

    def _git_head(self) -> Optional[str]:
        if not (self.root / ".git").exists():
            return None
        try:
            result = subprocess.run(
                ["git", "rev-parse", "HEAD"],
                cwd=self.root,
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"git rev-parse failed in {self.root}: {e}")
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None
