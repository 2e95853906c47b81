from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import LowScoreReason
from .model import Checkin, NewCheckin


class CheckinRepository(Protocol):
    def get_by_id(self, checkin_id: int) -> Optional[Checkin]:
        raise NotImplementedError

    def get_first_for_worker(self, worker_id: int) -> Optional[Checkin]:
        """Earliest check-in ever recorded for the worker (reconciliation baseline)."""

        raise NotImplementedError

    def get_for_worker_and_date(self, worker_id: int, local_date: date) -> Optional[Checkin]:
        raise NotImplementedError

    def list_for_worker(self, *, worker_id: int, start: date, end: date) -> Sequence[Checkin]:
        raise NotImplementedError

    def list_for_team(self, *, team_id: int, start: date, end: date) -> Sequence[Checkin]:
        raise NotImplementedError

    def create(self, record: NewCheckin) -> int:
        """Insert a check-in.

        Raises StateViolationError(ALREADY_CHECKED_IN) when (worker, local_date) exists.
        """

        raise NotImplementedError

    def set_low_score_reason(
        self,
        *,
        checkin_id: int,
        reason: LowScoreReason,
        details: Optional[str] = None,
    ) -> bool:
        """Set the reason only if none is set yet. Returns False otherwise."""

        raise NotImplementedError
