from __future__ import annotations

import pytest

from src.readiness_system.readiness_system.checkins.readiness import (
    ReadinessMetrics,
    readiness_status,
    score_checkin,
)
from src.readiness_system.readiness_system.core.enums import ReadinessStatus
from src.readiness_system.readiness_system.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "mood, stress, sleep, physical, score, status",
    [
        (10, 1, 10, 10, 100, ReadinessStatus.GREEN),
        (1, 10, 1, 1, 10, ReadinessStatus.RED),
        (7, 4, 7, 7, 70, ReadinessStatus.GREEN),
        (5, 6, 5, 5, 50, ReadinessStatus.YELLOW),
        (5, 6, 5, 4, 48, ReadinessStatus.RED),
        # 29 / 4 = 7.25 -> 72.5 rounds half-up to 73.
        (8, 4, 7, 7, 73, ReadinessStatus.GREEN),
    ],
)
def test_score_checkin(mood, stress, sleep, physical, score, status):
    result = score_checkin(ReadinessMetrics(mood=mood, stress=stress, sleep=sleep, physical_health=physical))

    assert result.score == score
    assert result.status == status


def test_status_thresholds():
    assert readiness_status(70) == ReadinessStatus.GREEN
    assert readiness_status(69) == ReadinessStatus.YELLOW
    assert readiness_status(50) == ReadinessStatus.YELLOW
    assert readiness_status(49) == ReadinessStatus.RED


@pytest.mark.parametrize("bad", [0, 11, 5.5, True, None, "7"])
def test_metrics_must_be_integers_between_1_and_10(bad):
    with pytest.raises(ValidationError):
        ReadinessMetrics(mood=bad, stress=5, sleep=5, physical_health=5)
