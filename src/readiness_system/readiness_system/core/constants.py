"""Constants and defaults.

Note: Keep policy constants here to avoid magic numbers spread across code.
"""

DEFAULT_LATE_GRACE_MINUTES = 15
EARLY_CHECKIN_WINDOW_MINUTES = 30
RETURNING_FROM_LEAVE_DAYS = 3
DEFAULT_ABSENCE_LOOKBACK_DAYS = 90

METRIC_MIN = 1
METRIC_MAX = 10

READINESS_GREEN_MIN = 70
READINESS_YELLOW_MIN = 50

ATTENDANCE_WEIGHT_GREEN = 100
ATTENDANCE_WEIGHT_YELLOW = 75
ATTENDANCE_WEIGHT_ABSENT = 0

TEAM_GRADE_READINESS_PERCENT = 60
TEAM_GRADE_COMPLIANCE_PERCENT = 40

MAX_EXPLANATION_LENGTH = 1000
MAX_REVIEW_NOTES_LENGTH = 500
MAX_LOW_SCORE_DETAILS_LENGTH = 500
MAX_CHECKIN_NOTE_LENGTH = 1000
DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 100
DEFAULT_REVIEW_QUEUE_LIMIT = 100
DEFAULT_TEAM_HISTORY_LIMIT = 20

PERIOD_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
}
