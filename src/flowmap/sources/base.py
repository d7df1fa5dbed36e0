"""Tree source protocol and shared helpers."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Protocol, TypeVar

from ..exceptions import ExternalDependencyError
from ..logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

EntryType = Literal["blob", "tree"]


@dataclass(frozen=True)
class FileEntry:
    """One entry of a repository tree at a commit.

    ``sha`` is the content hash of a blob; two entries with equal sha have
    identical content.
    """

    path: str
    sha: str
    size: int = 0
    type: EntryType = "blob"

    @property
    def is_blob(self) -> bool:
        return self.type == "blob"


class TreeSource(Protocol):
    """Read access to a repository snapshot."""

    def resolve_commit(self, repo: str, branch: str, access_token: Optional[str] = None) -> str:
        ...

    def list_tree(
        self, repo: str, ref: str, access_token: Optional[str] = None
    ) -> list[FileEntry]:
        ...

    def get_content(
        self, repo: str, ref: str, path: str, access_token: Optional[str] = None
    ) -> bytes:
        ...


def call_with_retry(
    fn: Callable[[], T],
    retries: int,
    backoff_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "request",
) -> T:
    """Call ``fn``, retrying retryable ExternalDependencyErrors.

    Waits ``backoff_seconds * 2**attempt`` between attempts. Non-retryable
    errors (and anything that is not an ExternalDependencyError) propagate on
    the first failure; the last retryable error is re-raised once ``retries``
    extra attempts are used up.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except ExternalDependencyError as e:
            if not e.retryable or attempt >= retries:
                raise
            delay = backoff_seconds * (2**attempt)
            logger.debug(f"{label} failed ({e}); retry {attempt + 1}/{retries} in {delay:.2f}s")
            sleep(delay)
            attempt += 1
