from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from ..common.datetime_utils import utc_now
from ..common.validators import require_enum, require_max_length, require_non_empty
from ..core.constants import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_REVIEW_QUEUE_LIMIT,
    DEFAULT_TEAM_HISTORY_LIMIT,
    MAX_EXPLANATION_LENGTH,
    MAX_HISTORY_LIMIT,
    MAX_REVIEW_NOTES_LENGTH,
)
from ..core.enums import AbsenceReason, AbsenceStatus, ErrorCode, ReviewDecision, Role
from ..core.exceptions import AuthorizationError, NotFoundError, StateViolationError, ValidationError
from ..teams.repository import TeamRepository
from ..workers.model import Worker
from ..workers.repository import WorkerRepository
from .model import Absence, AbsenceCounts, Justification, JustificationInput, Review
from .reconciler import AbsenceReconciler
from .repository import AbsenceRepository
from .state import justify, review

logger = logging.getLogger(__name__)

REVIEWER_ROLES = frozenset({Role.TEAM_LEAD, Role.SUPERVISOR, Role.EXECUTIVE, Role.ADMIN})


class AbsenceService:
    """Two-party workflow: the worker justifies, a supervisor reviews."""

    def __init__(
        self,
        absences: AbsenceRepository,
        workers: WorkerRepository,
        teams: TeamRepository,
        reconciler: AbsenceReconciler,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._absences = absences
        self._workers = workers
        self._teams = teams
        self._reconciler = reconciler
        self._clock = clock

    # ---- worker side ----

    def list_pending_justifications(self, worker_id: int, *, now: Optional[datetime] = None) -> List[Absence]:
        self._reconciler.reconcile(worker_id, now=now)
        return list(self._absences.list_awaiting_worker(worker_id))

    def has_blocking_absences(self, worker_id: int) -> bool:
        return self._absences.count_awaiting_worker(worker_id) > 0

    def submit_justification(
        self,
        worker_id: int,
        items: Sequence[JustificationInput],
        *,
        now: Optional[datetime] = None,
    ) -> List[Absence]:
        cleaned = self._clean_justifications(items)
        justified_at = now or self._clock()

        found = {a.absence_id: a for a in self._absences.get_many([i.absence_id for i in cleaned])}

        # Validate every target before writing any of them.
        updated: List[Absence] = []
        for item in cleaned:
            absence = found.get(item.absence_id)
            if absence is None:
                raise NotFoundError(f"Absence {item.absence_id} not found")
            if absence.worker_id != worker_id:
                raise StateViolationError(
                    f"Absence {item.absence_id} does not belong to you",
                    code=ErrorCode.NOT_OWNER,
                )
            new_state = justify(
                absence.state,
                Justification(
                    reason_category=item.reason_category,
                    explanation=item.explanation,
                    justified_at=justified_at,
                ),
            )
            updated.append(absence.with_state(new_state))

        if not self._absences.apply_justifications(worker_id=worker_id, items=cleaned, justified_at=justified_at):
            raise StateViolationError(
                "One or more absences were justified concurrently; nothing was saved",
                code=ErrorCode.ALREADY_JUSTIFIED,
            )

        logger.info(
            "Worker %s justified absence(s) %s",
            worker_id,
            ", ".join(str(a.absence_id) for a in updated),
        )
        return updated

    def get_history(self, worker_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> List[Absence]:
        limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))
        return list(self._absences.list_history(worker_id, limit=limit))

    def get_status_counts(self, worker_id: int) -> AbsenceCounts:
        worker = self._workers.get_by_id(worker_id)
        if not worker:
            raise NotFoundError(f"Worker {worker_id} not found")
        return self._absences.count_by_state(company_id=worker.company_id, worker_id=worker.worker_id)

    # ---- supervisor side ----

    def list_pending_reviews(self, reviewer_id: int, *, limit: int = DEFAULT_REVIEW_QUEUE_LIMIT) -> List[Absence]:
        reviewer = self._get_reviewer(reviewer_id)
        limit = max(1, min(int(limit), DEFAULT_REVIEW_QUEUE_LIMIT))

        rows = self._absences.list_awaiting_review(
            company_id=reviewer.company_id,
            team_ids=self._team_scope(reviewer),
            limit=limit,
        )
        return [a for a in rows if a.worker_id != reviewer.worker_id]

    def list_team_history(
        self,
        viewer_id: int,
        *,
        status: AbsenceStatus | str | None = None,
        limit: int = DEFAULT_TEAM_HISTORY_LIMIT,
    ) -> List[Absence]:
        """Absences of the teams a reviewer oversees, newest first."""
        viewer = self._get_reviewer(viewer_id)
        if status is not None:
            status = require_enum(status, AbsenceStatus, "status")
        limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))

        team_ids = self._team_scope(viewer)
        if team_ids == []:
            raise ValidationError("You are not leading any team", code=ErrorCode.NO_TEAM)
        return list(
            self._absences.list_for_scope(company_id=viewer.company_id, team_ids=team_ids, status=status, limit=limit)
        )

    def get_absence_stats(self, viewer_id: int) -> AbsenceCounts:
        """Workers count their own absences, team leads their teams', everyone else the company's."""
        viewer = self._workers.get_by_id(viewer_id)
        if not viewer or not viewer.is_active:
            raise AuthorizationError("Viewer not found")

        if viewer.role == Role.WORKER:
            return self._absences.count_by_state(company_id=viewer.company_id, worker_id=viewer.worker_id)
        return self._absences.count_by_state(company_id=viewer.company_id, team_ids=self._team_scope(viewer))

    def get_absence(self, absence_id: int, viewer_id: int) -> Absence:
        viewer = self._workers.get_by_id(viewer_id)
        if not viewer or not viewer.is_active:
            raise AuthorizationError("Viewer not found")

        absence = self._absences.get_by_id(absence_id)
        if not absence or absence.company_id != viewer.company_id:
            raise NotFoundError(f"Absence {absence_id} not found")
        if absence.worker_id == viewer.worker_id:
            return absence

        if viewer.role == Role.WORKER:
            raise AuthorizationError("You can only view your own absences", code=ErrorCode.NOT_OWNER)
        if viewer.role == Role.TEAM_LEAD and absence.team_id not in self._team_scope(viewer):
            raise AuthorizationError("You can only view absences of your own team", code=ErrorCode.NOT_IN_TEAM)
        return absence

    def review_absence(
        self,
        absence_id: int,
        reviewer_id: int,
        decision: ReviewDecision | str,
        notes: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Absence:
        decision = require_enum(decision, ReviewDecision, "action")
        notes = (notes or "").strip() or None
        require_max_length(notes, "notes", MAX_REVIEW_NOTES_LENGTH)

        reviewer = self._get_reviewer(reviewer_id)

        absence = self._absences.get_by_id(absence_id)
        if not absence:
            raise NotFoundError(f"Absence {absence_id} not found")
        self._check_review_scope(reviewer, absence)

        decided = Review(reviewed_by=reviewer.worker_id, reviewed_at=now or self._clock(), notes=notes)
        new_state = review(absence.state, decision, decided)

        applied = self._absences.apply_review(
            absence_id=absence.absence_id,
            status=decision.resulting_status,
            reviewed_by=decided.reviewed_by,
            reviewed_at=decided.reviewed_at,
            review_notes=notes,
        )
        if not applied:
            # Lost a race: re-read so the caller learns what actually happened.
            current = self._absences.get_by_id(absence_id)
            if current is None:
                raise NotFoundError(f"Absence {absence_id} not found")
            review(current.state, decision, decided)
            raise StateViolationError("This absence has already been reviewed", code=ErrorCode.ALREADY_REVIEWED)

        logger.info(
            "Absence %s of worker %s marked %s by %s",
            absence.absence_id,
            absence.worker_id,
            decision.resulting_status.value,
            reviewer.worker_id,
        )
        return absence.with_state(new_state)

    # ---- helpers ----

    def _clean_justifications(self, items: Sequence[JustificationInput]) -> List[JustificationInput]:
        if not items:
            raise ValidationError("At least one justification is required")

        cleaned: List[JustificationInput] = []
        seen = set()
        for item in items:
            absence_id = int(item.absence_id)
            if absence_id in seen:
                raise ValidationError(f"Absence {absence_id} is listed more than once")
            seen.add(absence_id)

            explanation = require_non_empty(item.explanation, "explanation")
            require_max_length(explanation, "explanation", MAX_EXPLANATION_LENGTH)
            cleaned.append(
                JustificationInput(
                    absence_id=absence_id,
                    reason_category=require_enum(item.reason_category, AbsenceReason, "reasonCategory"),
                    explanation=explanation,
                )
            )
        return cleaned

    def _get_reviewer(self, reviewer_id: int) -> Worker:
        reviewer = self._workers.get_by_id(reviewer_id)
        if not reviewer or not reviewer.is_active:
            raise AuthorizationError("Reviewer not found")
        if reviewer.role not in REVIEWER_ROLES:
            raise AuthorizationError("Only team leads and supervisors can review absences")
        return reviewer

    def _check_review_scope(self, reviewer: Worker, absence: Absence) -> None:
        if absence.worker_id == reviewer.worker_id:
            raise AuthorizationError("You cannot review your own absence")

        if reviewer.role == Role.TEAM_LEAD:
            if absence.team_id not in self._team_scope(reviewer):
                raise AuthorizationError("You can only review absences of your own team", code=ErrorCode.NOT_IN_TEAM)
            return

        if absence.company_id != reviewer.company_id:
            raise AuthorizationError("Absence belongs to another company", code=ErrorCode.NOT_IN_TEAM)

    def _team_scope(self, viewer: Worker) -> Optional[List[int]]:
        """Team ids a team lead oversees; None means the whole company."""
        if viewer.role != Role.TEAM_LEAD:
            return None
        return [t.team_id for t in self._teams.list_led_by(viewer.worker_id)]
