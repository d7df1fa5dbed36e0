"""Record persistence."""

from .repository import AnalysisRepository, index_key, record_key
from .store import DiskStore, KeyValueStore, MemoryStore

__all__ = [
    "AnalysisRepository",
    "DiskStore",
    "KeyValueStore",
    "MemoryStore",
    "index_key",
    "record_key",
]
