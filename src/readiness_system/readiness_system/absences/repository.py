from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AbsenceStatus
from .model import Absence, AbsenceCounts, JustificationInput


class AbsenceRepository(Protocol):
    """Store for the engine's own Absence entity.

    The unique (worker_id, absence_date) key is the concurrency control: racing
    inserts for the same day must leave exactly one row.
    """

    def create_if_absent(
        self,
        *,
        worker_id: int,
        team_id: int,
        company_id: int,
        absence_date: date,
    ) -> Optional[Absence]:
        """Insert a PENDING_JUSTIFICATION absence.

        Returns None (not an error) when the row already exists.
        """

        raise NotImplementedError

    def get_by_id(self, absence_id: int) -> Optional[Absence]:
        raise NotImplementedError

    def get_many(self, absence_ids: Sequence[int]) -> Sequence[Absence]:
        raise NotImplementedError

    def list_for_worker(self, *, worker_id: int, start: date, end: date) -> Sequence[Absence]:
        raise NotImplementedError

    def list_awaiting_worker(self, worker_id: int) -> Sequence[Absence]:
        """PENDING_JUSTIFICATION with justified_at NULL, oldest date first."""

        raise NotImplementedError

    def count_awaiting_worker(self, worker_id: int) -> int:
        raise NotImplementedError

    def list_awaiting_review(
        self,
        *,
        company_id: int,
        team_ids: Optional[Sequence[int]] = None,
        limit: int = 100,
    ) -> Sequence[Absence]:
        """Justified but unreviewed absences, oldest justification first.

        `team_ids` narrows the company scope; None means every team.
        """

        raise NotImplementedError

    def list_history(self, worker_id: int, *, limit: int) -> Sequence[Absence]:
        raise NotImplementedError

    def list_for_scope(
        self,
        *,
        company_id: int,
        team_ids: Optional[Sequence[int]] = None,
        status: Optional[AbsenceStatus] = None,
        limit: int = 100,
    ) -> Sequence[Absence]:
        """Absences of a company (or some of its teams), newest date first."""

        raise NotImplementedError

    def count_by_state(
        self,
        *,
        company_id: int,
        worker_id: Optional[int] = None,
        team_ids: Optional[Sequence[int]] = None,
    ) -> AbsenceCounts:
        raise NotImplementedError

    def apply_justifications(
        self,
        *,
        worker_id: int,
        items: Sequence[JustificationInput],
        justified_at: datetime,
    ) -> bool:
        """All-or-nothing: every row must still be unjustified and owned by worker_id.

        Returns False (and writes nothing) if any row fails that guard.
        """

        raise NotImplementedError

    def apply_review(
        self,
        *,
        absence_id: int,
        status: AbsenceStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_notes: Optional[str] = None,
    ) -> bool:
        """Conditional single-row transition from 'awaiting supervisor'."""

        raise NotImplementedError
