"""
flowmap - Repository Screen and Flow Mapping

Scans a repository snapshot, detects its frontend framework, discovers the
screens it exposes and the code flows behind them, and keeps per-screen
screenshots current across commits.
"""

__version__ = "0.1.0"

from .config import ScanConfig, load_config
from .detection import FrameworkDetectionResult, FrameworkDetector
from .flows import CodeFlow, FlowExtractor
from .graph import AnalysisRecord
from .persistence import AnalysisRepository, DiskStore, MemoryStore
from .screens import Screen, ScreenExtractor
from .service import AnalysisResult, AnalysisService

__all__ = [
    "AnalysisService",  # Main entry point
    "AnalysisResult",
    "AnalysisRecord",
    "AnalysisRepository",
    "CodeFlow",
    "DiskStore",
    "FlowExtractor",
    "FrameworkDetectionResult",
    "FrameworkDetector",
    "MemoryStore",
    "ScanConfig",
    "Screen",
    "ScreenExtractor",
    "load_config",
]
