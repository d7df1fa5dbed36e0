"""Framework detection."""

from .detector import FrameworkDetector
from .models import CANDIDATES, FrameworkDetectionResult, FrameworkSignal
from .rules import RULES, parse_package_json

__all__ = [
    "FrameworkDetector",
    "FrameworkDetectionResult",
    "FrameworkSignal",
    "CANDIDATES",
    "RULES",
    "parse_package_json",
]
