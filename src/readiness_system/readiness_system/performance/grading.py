from __future__ import annotations

from fractions import Fraction
from typing import Optional

from ..common.validators import round_half_up
from ..core.constants import TEAM_GRADE_COMPLIANCE_PERCENT, TEAM_GRADE_READINESS_PERCENT

# Lowest score for each letter, best first.
GRADE_THRESHOLDS = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
)


def letter_grade(score: Optional[int]) -> Optional[str]:
    if score is None:
        return None
    for minimum, letter in GRADE_THRESHOLDS:
        if score >= minimum:
            return letter
    return "F"


def team_grade_score(readiness: Optional[int | Fraction], compliance: Optional[int | Fraction]) -> Optional[int]:
    """60% average readiness + 40% attendance compliance, rounded half-up.

    A missing side contributes nothing; both missing means no grade.
    """
    if readiness is None and compliance is None:
        return None
    if readiness is None:
        return round_half_up(Fraction(compliance))
    if compliance is None:
        return round_half_up(Fraction(readiness))

    blended = Fraction(readiness) * TEAM_GRADE_READINESS_PERCENT + Fraction(compliance) * TEAM_GRADE_COMPLIANCE_PERCENT
    return round_half_up(blended / 100)
