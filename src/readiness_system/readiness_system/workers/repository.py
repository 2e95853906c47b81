from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Worker


class WorkerRepository(Protocol):
    """Repository interface for Worker.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        raise NotImplementedError

    def list_team_members(self, team_id: int) -> Sequence[Worker]:
        """Active workers (role WORKER) currently assigned to the team."""

        raise NotImplementedError

    def update_streak(
        self,
        *,
        worker_id: int,
        current_streak: int,
        longest_streak: int,
        last_checkin_date: date,
    ) -> bool:
        raise NotImplementedError
