"""Health, validation and overall scores."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict

from .models import Scores


@dataclass(frozen=True)
class ScoringWeights:
    """Every weight and cap used by the scoring engine."""

    unused_weight: float = 40.0
    duplicate_weight: float = 30.0
    unused_cap: float = 40.0
    duplicate_cap: float = 30.0
    complexity_bonus_cap: float = 10.0
    complexity_bonus_divisor: float = 10.0
    critical_error_penalty: float = 20.0
    regular_error_penalty: float = 10.0
    warning_penalty: float = 2.0
    critical_error_cap: float = 100.0
    regular_error_cap: float = 100.0
    warning_cap: float = 20.0

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "ScoringWeights":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown scoring settings: {', '.join(sorted(unknown))}")
        return cls(**{k: float(v) for k, v in data.items()})


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def health_score(
    total_declarations: int,
    unused: int,
    duplicates: int,
    weights: ScoringWeights = ScoringWeights(),
) -> int:
    """Structural hygiene score; 100 when there is nothing to grade."""
    if total_declarations <= 0:
        return 100
    unused_penalty = min(weights.unused_cap, unused / total_declarations * weights.unused_weight)
    duplicate_penalty = min(
        weights.duplicate_cap, duplicates / total_declarations * weights.duplicate_weight
    )
    bonus = 0.0
    if weights.complexity_bonus_divisor > 0:
        bonus = min(
            weights.complexity_bonus_cap,
            total_declarations / weights.complexity_bonus_divisor,
        )
    return int(_clamp(round(100 - unused_penalty - duplicate_penalty + bonus)))


def validation_score(
    critical_errors: int,
    regular_errors: int,
    warnings: int,
    weights: ScoringWeights = ScoringWeights(),
) -> int:
    critical = min(weights.critical_error_cap, critical_errors * weights.critical_error_penalty)
    regular = min(weights.regular_error_cap, regular_errors * weights.regular_error_penalty)
    warning = min(weights.warning_cap, warnings * weights.warning_penalty)
    return int(_clamp(round(100 - critical - regular - warning)))


def calculate_scores(
    total_declarations: int,
    unused: int,
    duplicates: int,
    critical_errors: int,
    regular_errors: int,
    warnings: int,
    weights: ScoringWeights = ScoringWeights(),
) -> Scores:
    health = health_score(total_declarations, unused, duplicates, weights)
    validation = validation_score(critical_errors, regular_errors, warnings, weights)
    return Scores(
        health_score=health,
        validation_score=validation,
        overall_score=round((health + validation) / 2),
    )
