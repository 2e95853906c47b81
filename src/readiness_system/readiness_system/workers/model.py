from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Worker:
    """Domain entity: a worker as the engine sees it.

    Note: Identity/auth fields belong to the external user module; only the
    calendar baseline and streak counters are used here.
    """

    worker_id: int
    company_id: int
    team_id: Optional[int]
    full_name: str
    role: Role
    created_at: datetime
    team_joined_at: Optional[datetime] = None
    last_checkin_date: Optional[date] = None
    current_streak: int = 0
    longest_streak: int = 0
    is_active: bool = True
