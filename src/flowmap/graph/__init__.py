"""Record assembly, stable ids and graph traversal."""

from .ids import analysis_id, flow_discriminator, flow_id, normalize_path, normalize_route, screen_id
from .models import AnalysisRecord, ScanDiagnostics
from .assembler import assemble_record
from .traversal import find_call_cycles, reachable_flows, resolve_navigation, validate_integrity

__all__ = [
    "AnalysisRecord",
    "ScanDiagnostics",
    "assemble_record",
    "analysis_id",
    "flow_discriminator",
    "flow_id",
    "normalize_path",
    "normalize_route",
    "screen_id",
    "find_call_cycles",
    "reachable_flows",
    "resolve_navigation",
    "validate_integrity",
]
