"""
Classifier Signals
A classifier is an ordered list of independent signals. Each triggered
signal adds its weight and a reason tag; the score is their plain sum.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .models import LIKELY_PROBLEMATIC, LIKELY_VALID, ClassificationResult


@dataclass(frozen=True)
class SignalHit:
    """A triggered signal; reason defaults to the signal name"""
    reason: Optional[str] = None
    suggestion: Optional[str] = None


Detector = Callable[[Any], Optional[SignalHit]]


@dataclass(frozen=True)
class Signal:
    name: str
    weight: int
    detector: Detector


@dataclass(frozen=True)
class Evaluation:
    score: int
    reasons: Tuple[str, ...]
    suggestions: Tuple[str, ...]
    # Suggestions of negative-weight hits only
    corrections: Tuple[str, ...] = ()


def build_signals(specs: Sequence[Tuple[str, Detector]], weights: Dict[str, int]) -> List[Signal]:
    """Attach configured weights to (name, detector) pairs; unknown names weigh 0"""
    return [Signal(name=name, weight=weights.get(name, 0), detector=detector) for name, detector in specs]


def evaluate_signals(signals: Sequence[Signal], subject: Any) -> Evaluation:
    score = 0
    reasons = []
    suggestions = []
    corrections = []
    for signal in signals:
        hit = signal.detector(subject)
        if hit is None:
            continue
        score += signal.weight
        reasons.append(hit.reason or signal.name)
        if hit.suggestion:
            suggestions.append(hit.suggestion)
            if signal.weight < 0:
                corrections.append(hit.suggestion)
    return Evaluation(score=score, reasons=tuple(reasons), suggestions=tuple(suggestions),
                      corrections=tuple(corrections))


def classification_for(score: int) -> str:
    return LIKELY_VALID if score > 0 else LIKELY_PROBLEMATIC


def confidence_for(score: int) -> float:
    """Saturating normalization of the score magnitude, not a probability"""
    return min(abs(score) / 10, 1.0)


def to_result(evaluation: Evaluation, suggestion: str) -> ClassificationResult:
    return ClassificationResult(
        classification=classification_for(evaluation.score),
        score=evaluation.score,
        confidence=confidence_for(evaluation.score),
        reasons=evaluation.reasons,
        suggestion=suggestion,
        suggestions=evaluation.suggestions,
    )


def first_matching(reasons: Sequence[str], precedence: Sequence[Tuple[str, str]]) -> Optional[str]:
    """Message of the highest-precedence reason present"""
    for reason, message in precedence:
        if reason in reasons:
            return message
    return None
