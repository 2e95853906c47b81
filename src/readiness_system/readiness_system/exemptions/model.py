from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import ExemptionStatus, ExemptionType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Exemption:
    """Approved-or-not leave period for one worker.

    The range is inclusive on both ends: end_date is the last day of leave, the
    day after it is the first required check-in.
    """

    exemption_id: int
    worker_id: int
    exemption_type: ExemptionType
    status: ExemptionStatus
    start_date: Optional[date]
    end_date: Optional[date]
    reason: Optional[str] = None

    def __post_init__(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError("Exemption end date must be on or after its start date")

    @property
    def is_approved(self) -> bool:
        return self.status == ExemptionStatus.APPROVED

    def covers(self, day: date) -> bool:
        """Only APPROVED exemptions with both dates set suppress requirements."""
        if not self.is_approved or self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class LeaveStatus:
    """Whether a worker is on leave today, or just back and not yet checked in."""

    is_on_leave: bool = False
    is_returning: bool = False
    current_exemption: Optional[Exemption] = None
    last_exemption: Optional[Exemption] = None
