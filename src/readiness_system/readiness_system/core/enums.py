from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorization decisions."""

    WORKER = "WORKER"
    TEAM_LEAD = "TEAM_LEAD"
    SUPERVISOR = "SUPERVISOR"
    EXECUTIVE = "EXECUTIVE"
    ADMIN = "ADMIN"


class ReadinessStatus(str, Enum):
    """Readiness bucket derived from the check-in score."""

    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


class AttendanceStatus(str, Enum):
    """Per-day attendance classification.

    GREEN/YELLOW come from a check-in's punctuality; ABSENT and EXCUSED come from
    the Absence entity or an approved exemption, never from a check-in.
    """

    GREEN = "GREEN"
    YELLOW = "YELLOW"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"


class ExemptionStatus(str, Enum):
    """Lifecycle of a leave/exemption request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ExemptionType(str, Enum):
    SICK_LEAVE = "SICK_LEAVE"
    PERSONAL_LEAVE = "PERSONAL_LEAVE"
    MEDICAL_APPOINTMENT = "MEDICAL_APPOINTMENT"
    FAMILY_EMERGENCY = "FAMILY_EMERGENCY"
    OTHER = "OTHER"


class AbsenceStatus(str, Enum):
    PENDING_JUSTIFICATION = "PENDING_JUSTIFICATION"
    EXCUSED = "EXCUSED"
    UNEXCUSED = "UNEXCUSED"


class AbsenceReason(str, Enum):
    SICK = "SICK"
    EMERGENCY = "EMERGENCY"
    PERSONAL = "PERSONAL"
    FORGOT_CHECKIN = "FORGOT_CHECKIN"
    TECHNICAL_ISSUE = "TECHNICAL_ISSUE"
    OTHER = "OTHER"


class ReviewDecision(str, Enum):
    """Supervisor decision on a justified absence."""

    EXCUSE = "EXCUSE"
    UNEXCUSE = "UNEXCUSE"

    @property
    def resulting_status(self) -> AbsenceStatus:
        if self is ReviewDecision.EXCUSE:
            return AbsenceStatus.EXCUSED
        return AbsenceStatus.UNEXCUSED


class LowScoreReason(str, Enum):
    PHYSICAL_INJURY = "PHYSICAL_INJURY"
    ILLNESS_SICKNESS = "ILLNESS_SICKNESS"
    POOR_SLEEP = "POOR_SLEEP"
    HIGH_STRESS = "HIGH_STRESS"
    PERSONAL_ISSUES = "PERSONAL_ISSUES"
    FAMILY_EMERGENCY = "FAMILY_EMERGENCY"
    WORK_RELATED = "WORK_RELATED"
    OTHER = "OTHER"


class ErrorCode(str, Enum):
    """Machine-readable reason codes attached to domain errors."""

    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFIGURATION = "CONFIGURATION"
    NO_TEAM = "NO_TEAM"
    NOT_OWNER = "NOT_OWNER"
    NOT_IN_TEAM = "NOT_IN_TEAM"
    ALREADY_JUSTIFIED = "ALREADY_JUSTIFIED"
    ALREADY_REVIEWED = "ALREADY_REVIEWED"
    NOT_YET_JUSTIFIED = "NOT_YET_JUSTIFIED"
    BLOCKED_BY_ABSENCES = "BLOCKED_BY_ABSENCES"
    ON_LEAVE = "ON_LEAVE"
    NOT_WORK_DAY = "NOT_WORK_DAY"
    TOO_EARLY = "TOO_EARLY"
    TOO_LATE = "TOO_LATE"
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    LOW_SCORE_REASON_SET = "LOW_SCORE_REASON_SET"
    LOW_SCORE_REASON_NOT_ALLOWED = "LOW_SCORE_REASON_NOT_ALLOWED"
