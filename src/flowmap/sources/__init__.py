"""Repository snapshot sources."""

from .base import FileEntry, TreeSource, call_with_retry
from .github import GitHubTreeSource
from .local import LocalTreeSource, git_blob_sha
from .memory import MemoryTreeSource

__all__ = [
    "FileEntry",
    "TreeSource",
    "call_with_retry",
    "GitHubTreeSource",
    "LocalTreeSource",
    "MemoryTreeSource",
    "git_blob_sha",
]
