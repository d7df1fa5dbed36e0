"""Score a file tree against framework signature rules."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from ..logging_config import get_logger
from .models import CANDIDATES, MARKERS, FrameworkDetectionResult, FrameworkSignal
from .rules import RULES, DetectionContext, Rule

logger = get_logger(__name__)


class FrameworkDetector:
    """Deterministic weighted-rule framework detection.

    The result depends only on the set of paths and the provided contents:
    paths are de-duplicated and sorted first, rules run in their fixed order,
    and ties resolve by the fixed candidate order.
    """

    def __init__(
        self,
        threshold: float = 2.0,
        saturation: float = 5.0,
        rules: tuple[Rule, ...] = RULES,
    ) -> None:
        self.threshold = threshold
        self.saturation = saturation
        self.rules = rules

    def detect(
        self, paths: Iterable[str], contents: Optional[Mapping[str, str]] = None
    ) -> FrameworkDetectionResult:
        ctx = DetectionContext.build(list(paths), contents or {})

        scores: dict[str, float] = {}
        signals: list[FrameworkSignal] = []
        for rule in self.rules:
            if not rule.matches(ctx):
                continue
            for framework in rule.frameworks:
                scores[framework] = scores.get(framework, 0.0) + rule.weight
                signals.append(FrameworkSignal(framework, rule.name, rule.weight))

        detected = {name: scores[name] for name in CANDIDATES if scores.get(name, 0.0) > 0}
        result = FrameworkDetectionResult(detected=detected, signals=signals)

        contenders = [name for name in result.ranked() if name not in MARKERS]
        if contenders:
            best = contenders[0]
            score = detected[best]
            if score >= self.threshold:
                total = sum(detected.values())
                share = score / total if total else 0.0
                strength = min(1.0, score / self.saturation)
                result.primary = best
                result.confidence = round(share * strength, 4)

        logger.info(
            f"Framework detection: primary={result.primary} "
            f"confidence={result.confidence:.2f} detected={result.ranked()}"
        )
        return result
