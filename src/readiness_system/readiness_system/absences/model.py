from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional, Union

from ..core.enums import AbsenceReason, AbsenceStatus


@dataclass(frozen=True)
class Justification:
    reason_category: AbsenceReason
    explanation: str
    justified_at: datetime


@dataclass(frozen=True)
class Review:
    reviewed_by: int
    reviewed_at: datetime
    notes: Optional[str] = None


@dataclass(frozen=True)
class AwaitingWorker:
    """No explanation yet; the worker is blocked from checking in."""


@dataclass(frozen=True)
class AwaitingSupervisor:
    justification: Justification


@dataclass(frozen=True)
class Excused:
    justification: Justification
    review: Review


@dataclass(frozen=True)
class Unexcused:
    justification: Justification
    review: Review


AbsenceState = Union[AwaitingWorker, AwaitingSupervisor, Excused, Unexcused]


@dataclass(frozen=True)
class Absence:
    """Storage shape of an absence (one per worker per local date).

    The nullable justification/review columns are only meaningful through
    `state`; services transition the state and collapse it back with
    `with_state`.
    """

    absence_id: int
    worker_id: int
    team_id: int
    company_id: int
    absence_date: date
    status: AbsenceStatus = AbsenceStatus.PENDING_JUSTIFICATION
    reason_category: Optional[AbsenceReason] = None
    explanation: Optional[str] = None
    justified_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None

    def __post_init__(self):
        if self.status != AbsenceStatus.PENDING_JUSTIFICATION and (self.reviewed_by is None or self.reviewed_at is None):
            raise ValueError(f"Absence {self.absence_id}: a decided absence must carry reviewer and review time")
        if self.reviewed_by is not None and self.justified_at is None:
            raise ValueError(f"Absence {self.absence_id}: reviewed before it was justified")
        if self.justified_at is not None and self.reason_category is None:
            raise ValueError(f"Absence {self.absence_id}: justified without a reason category")

    @property
    def is_awaiting_worker(self) -> bool:
        return self.status == AbsenceStatus.PENDING_JUSTIFICATION and self.justified_at is None

    @property
    def is_awaiting_supervisor(self) -> bool:
        return self.status == AbsenceStatus.PENDING_JUSTIFICATION and self.justified_at is not None

    @property
    def state(self) -> AbsenceState:
        if self.justified_at is None:
            return AwaitingWorker()

        justification = Justification(
            reason_category=self.reason_category,
            explanation=self.explanation or "",
            justified_at=self.justified_at,
        )
        if self.status == AbsenceStatus.PENDING_JUSTIFICATION:
            return AwaitingSupervisor(justification)

        review = Review(reviewed_by=self.reviewed_by, reviewed_at=self.reviewed_at, notes=self.review_notes)
        if self.status == AbsenceStatus.EXCUSED:
            return Excused(justification, review)
        return Unexcused(justification, review)

    def with_state(self, state: AbsenceState) -> "Absence":
        if isinstance(state, AwaitingWorker):
            return replace(
                self,
                status=AbsenceStatus.PENDING_JUSTIFICATION,
                reason_category=None,
                explanation=None,
                justified_at=None,
                reviewed_by=None,
                reviewed_at=None,
                review_notes=None,
            )

        j = state.justification
        if isinstance(state, AwaitingSupervisor):
            status = AbsenceStatus.PENDING_JUSTIFICATION
            review = None
        else:
            status = AbsenceStatus.EXCUSED if isinstance(state, Excused) else AbsenceStatus.UNEXCUSED
            review = state.review

        return replace(
            self,
            status=status,
            reason_category=j.reason_category,
            explanation=j.explanation,
            justified_at=j.justified_at,
            reviewed_by=review.reviewed_by if review else None,
            reviewed_at=review.reviewed_at if review else None,
            review_notes=review.notes if review else None,
        )


@dataclass(frozen=True)
class JustificationInput:
    """One item of a (possibly batched) worker justification."""

    absence_id: int
    reason_category: AbsenceReason
    explanation: str


@dataclass(frozen=True)
class AbsenceCounts:
    """Absences per workflow state; the two pending states are kept apart."""

    pending_justification: int = 0
    pending_review: int = 0
    excused: int = 0
    unexcused: int = 0

    @property
    def total(self) -> int:
        return self.pending_justification + self.pending_review + self.excused + self.unexcused
