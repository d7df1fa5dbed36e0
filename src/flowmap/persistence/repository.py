"""Latest-record-per-branch repository over a key-value store.

Keys:
    analysis:{repo}:{branch}   -> serialized AnalysisRecord (latest only)
    analysis-id:{analysisId}   -> {"repo": ..., "branch": ...}
"""

from __future__ import annotations

from typing import Optional

from ..exceptions import NotFoundError, PersistenceError
from ..graph.models import AnalysisRecord
from ..logging_config import get_logger
from .store import KeyValueStore

logger = get_logger(__name__)


def record_key(repo: str, branch: str) -> str:
    return f"analysis:{repo}:{branch}"


def index_key(analysis_id: str) -> str:
    return f"analysis-id:{analysis_id}"


class AnalysisRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def save(self, record: AnalysisRecord) -> str:
        """Replace the latest record for the record's (repo, branch)."""
        analysis_id = record.analysis_id
        self.store.set(record_key(record.repo, record.branch), record.to_dict())
        self.store.set(index_key(analysis_id), {"repo": record.repo, "branch": record.branch})
        logger.debug(f"Saved analysis {analysis_id} for {record.repo}@{record.branch}")
        return analysis_id

    def load_latest(self, repo: str, branch: str) -> Optional[AnalysisRecord]:
        data = self.store.get(record_key(repo, branch))
        if data is None:
            return None
        try:
            return AnalysisRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(
                f"Stored record is unreadable: {e}", context={"repo": repo, "branch": branch}
            )

    def get(self, analysis_id: str) -> AnalysisRecord:
        """Record for ``analysis_id`` while it is still the latest for its branch.

        Raises:
            NotFoundError: Unknown id, or the record has been superseded
        """
        location = self.store.get(index_key(analysis_id))
        if not location:
            raise NotFoundError(
                f"Analysis {analysis_id} not found", context={"analysis_id": analysis_id}
            )
        record = self.load_latest(location["repo"], location["branch"])
        if record is None or record.analysis_id != analysis_id:
            raise NotFoundError(
                f"Analysis {analysis_id} has been superseded",
                context={"analysis_id": analysis_id, **location},
                recovery_hint="Re-run analyze for the latest commit",
            )
        return record
