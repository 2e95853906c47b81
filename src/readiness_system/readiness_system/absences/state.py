"""Absence justification/review transitions.

    AwaitingWorker --justify--> AwaitingSupervisor --review(EXCUSE)--> Excused
                                                   --review(UNEXCUSE)--> Unexcused

Nothing fires automatically; an absence may stay in either pending state forever.
"""

from __future__ import annotations

from ..core.enums import ErrorCode, ReviewDecision
from ..core.exceptions import StateViolationError
from .model import AbsenceState, AwaitingSupervisor, AwaitingWorker, Excused, Justification, Review, Unexcused


def justify(state: AbsenceState, justification: Justification) -> AwaitingSupervisor:
    if isinstance(state, AwaitingWorker):
        return AwaitingSupervisor(justification)
    raise StateViolationError("Absence already justified", code=ErrorCode.ALREADY_JUSTIFIED)


def review(state: AbsenceState, decision: ReviewDecision, decision_review: Review) -> Excused | Unexcused:
    if isinstance(state, AwaitingWorker):
        raise StateViolationError("Worker has not justified this absence yet", code=ErrorCode.NOT_YET_JUSTIFIED)
    if not isinstance(state, AwaitingSupervisor):
        raise StateViolationError("This absence has already been reviewed", code=ErrorCode.ALREADY_REVIEWED)

    if decision is ReviewDecision.EXCUSE:
        return Excused(state.justification, decision_review)
    return Unexcused(state.justification, decision_review)
