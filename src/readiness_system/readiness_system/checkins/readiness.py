from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction

from ..common.validators import require_int_in_range, round_half_up
from ..core.constants import METRIC_MAX, METRIC_MIN, READINESS_GREEN_MIN, READINESS_YELLOW_MIN
from ..core.enums import ReadinessStatus


@dataclass(frozen=True)
class ReadinessMetrics:
    """Four self-reported metrics, each 1-10. Stress is the only 'higher is worse' one."""

    mood: int
    stress: int
    sleep: int
    physical_health: int

    def __post_init__(self):
        for name in ("mood", "stress", "sleep", "physical_health"):
            require_int_in_range(getattr(self, name), name, METRIC_MIN, METRIC_MAX)


@dataclass(frozen=True)
class ReadinessResult:
    score: int
    status: ReadinessStatus


def readiness_status(score: int) -> ReadinessStatus:
    if score >= READINESS_GREEN_MIN:
        return ReadinessStatus.GREEN
    if score >= READINESS_YELLOW_MIN:
        return ReadinessStatus.YELLOW
    return ReadinessStatus.RED


def score_checkin(metrics: ReadinessMetrics) -> ReadinessResult:
    """Average of mood, inverted stress, sleep and physical health, scaled to 0-100.

    (10, 1, 10, 10) -> 100 and (1, 10, 1, 1) -> 10, so every valid tuple lands in [10, 100].
    """
    inverted_stress = (METRIC_MAX + 1) - metrics.stress
    total = metrics.mood + inverted_stress + metrics.sleep + metrics.physical_health
    average = Fraction(total, 4)
    score = round_half_up(average / METRIC_MAX * 100)
    return ReadinessResult(score=score, status=readiness_status(score))
