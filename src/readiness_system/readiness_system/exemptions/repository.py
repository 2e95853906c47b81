from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import Exemption


class ExemptionRepository(Protocol):
    """Read-only access to the exemption store owned by the leave module."""

    def list_approved_overlapping(self, *, worker_id: int, start: date, end: date) -> Sequence[Exemption]:
        """APPROVED exemptions whose [start_date, end_date] intersects [start, end]."""

        raise NotImplementedError
