"""Code flow extraction and call-graph linking."""

from .classifier import LineMatch, classify_line, find_definition
from .extractor import FlowExtractor
from .models import FLOW_KINDS, CodeFlow, FlowExtraction, FlowKind

__all__ = [
    "CodeFlow",
    "FlowExtraction",
    "FlowExtractor",
    "FlowKind",
    "FLOW_KINDS",
    "LineMatch",
    "classify_line",
    "find_definition",
]
