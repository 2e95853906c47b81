from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.readiness_system.readiness_system.core.enums import AbsenceReason, AbsenceStatus, AttendanceStatus, Role
from src.readiness_system.readiness_system.core.exceptions import AuthorizationError, ConfigurationError, NotFoundError
from src.readiness_system.readiness_system.performance.period import Period

MONDAY_AFTER = datetime(2026, 2, 9, 10, 0, tzinfo=timezone.utc)
FIRST_WEEK = Period.custom(date(2026, 2, 2), date(2026, 2, 8))


def _reviewed(world, worker_id, day, status):
    return world.add_absence(
        worker_id,
        day,
        status=status,
        reason_category=AbsenceReason.SICK,
        explanation="Fever",
        justified_at=datetime(2026, 2, 6, 9, 0, tzinfo=timezone.utc),
        reviewed_by=300,
        reviewed_at=datetime(2026, 2, 6, 10, 0, tzinfo=timezone.utc),
    )


def test_mixed_week(world):
    world.add_worker(100)
    world.add_checkin(100, date(2026, 2, 2))
    world.add_checkin(100, date(2026, 2, 3), attendance_status=AttendanceStatus.YELLOW)
    world.add_exemption(100, date(2026, 2, 4), date(2026, 2, 4))
    _reviewed(world, 100, date(2026, 2, 5), AbsenceStatus.EXCUSED)

    result = world.performance_service().compute_performance(100, FIRST_WEEK, now=MONDAY_AFTER)

    # (100 + 75 + 0) / 3; excused days are left out, the empty Friday is absent.
    assert result.score == 58
    assert result.grade == "F"
    assert result.counted_days == 3
    assert result.work_days == 5
    assert result.breakdown == {
        "green": 1,
        "yellow": 1,
        "absent": 1,
        "excused": 2,
        "absence_pending": 0,
        "absence_unexcused": 0,
        "absence_excused": 1,
        "exempted": 1,
        "unrecorded": 1,
    }


def test_breakdown_tells_absence_states_apart(world):
    world.add_worker(100)
    world.add_checkin(100, date(2026, 2, 2))
    world.add_absence(100, date(2026, 2, 3))
    _reviewed(world, 100, date(2026, 2, 4), AbsenceStatus.UNEXCUSED)
    world.add_exemption(100, date(2026, 2, 5), date(2026, 2, 5))

    result = world.performance_service().compute_performance(100, FIRST_WEEK, now=MONDAY_AFTER)

    breakdown = result.breakdown
    assert breakdown["absent"] == 3
    assert breakdown["absence_pending"] == 1
    assert breakdown["absence_unexcused"] == 1
    assert breakdown["unrecorded"] == 1
    assert breakdown["excused"] == 1
    assert breakdown["exempted"] == 1
    assert breakdown["absence_excused"] == 0
    assert result.score == 25


def test_week_with_one_excused_and_one_unexcused_absence(world):
    world.add_worker(100)
    for day in (2, 3, 6):
        world.add_checkin(100, date(2026, 2, day))
    _reviewed(world, 100, date(2026, 2, 4), AbsenceStatus.EXCUSED)
    _reviewed(world, 100, date(2026, 2, 5), AbsenceStatus.UNEXCUSED)

    result = world.performance_service().compute_performance(100, FIRST_WEEK, now=MONDAY_AFTER)

    # (100 + 100 + 0 + 100) / 4; the excused Wednesday is not counted.
    assert result.counted_days == 4
    assert result.score == 75
    assert result.grade == "C"
    assert result.breakdown["green"] == 3
    assert result.breakdown["absence_excused"] == 1
    assert result.breakdown["absence_unexcused"] == 1


def test_unexcused_absence_counts_as_zero(world):
    world.add_worker(100)
    for day in (2, 3, 4):
        world.add_checkin(100, date(2026, 2, day))
    _reviewed(world, 100, date(2026, 2, 5), AbsenceStatus.UNEXCUSED)
    world.add_holiday(date(2026, 2, 6))

    result = world.performance_service().compute_performance(100, FIRST_WEEK, now=MONDAY_AFTER)

    assert result.score == 75
    assert result.grade == "C"


def test_pending_absence_counts_as_absent(world):
    world.add_worker(100)
    world.add_checkin(100, date(2026, 2, 2))
    world.add_absence(100, date(2026, 2, 3))

    result = world.performance_service().compute_performance(
        100, Period.custom(date(2026, 2, 2), date(2026, 2, 3)), now=MONDAY_AFTER
    )

    assert result.score == 50


def test_today_without_checkin_is_not_judged(world):
    world.add_worker(100)
    world.add_checkin(100, date(2026, 2, 2))

    result = world.performance_service().compute_performance(
        100, Period.custom(date(2026, 2, 2), date(2026, 2, 4)), now=datetime(2026, 2, 4, 10, 0, tzinfo=timezone.utc)
    )

    assert result.counted_days == 2
    assert result.score == 50


def test_days_before_baseline_are_ignored(world):
    world.add_worker(100, created_at=datetime(2026, 2, 6, 9, 0, tzinfo=timezone.utc))

    result = world.performance_service().compute_performance(100, FIRST_WEEK, now=MONDAY_AFTER)

    assert result.score is None
    assert result.grade is None
    assert result.counted_days == 0


def test_checkin_before_team_join_still_counts(world):
    world.add_worker(100, team_joined_at=datetime(2026, 2, 4, 12, 0, tzinfo=timezone.utc))
    world.add_checkin(100, date(2026, 2, 2))

    result = world.performance_service().compute_performance(100, FIRST_WEEK, now=MONDAY_AFTER)

    # Feb 2 checked in; Feb 3-4 precede the join; Feb 5-6 are empty.
    assert result.counted_days == 3
    assert result.score == 33


def test_named_period_uses_company_today(world):
    world.add_company(tz="Asia/Manila")
    world.add_worker(100)

    # 20:00 UTC on the 8th is already the 9th in Manila.
    result = world.performance_service().compute_performance(
        100, "week", now=datetime(2026, 2, 8, 20, 0, tzinfo=timezone.utc)
    )

    assert result.period == Period(date(2026, 2, 3), date(2026, 2, 9))


def test_worker_without_team_gets_empty_result(world):
    world.add_worker(100, team_id=None)

    result = world.performance_service().compute_performance(100, "week", now=MONDAY_AFTER)

    assert result.score is None
    assert result.work_days == 0


def test_worker_without_team_uses_company_today(world):
    world.add_company(tz="Asia/Manila")
    world.add_worker(100, team_id=None)

    result = world.performance_service().compute_performance(
        100, "week", now=datetime(2026, 2, 8, 20, 0, tzinfo=timezone.utc)
    )

    assert result.period == Period(date(2026, 2, 3), date(2026, 2, 9))


def test_worker_without_team_or_company_is_a_configuration_error(world):
    world.add_worker(100, team_id=None, company_id=5)

    with pytest.raises(ConfigurationError):
        world.performance_service().compute_performance(100, "week", now=MONDAY_AFTER)


def test_unknown_worker(world):
    with pytest.raises(NotFoundError):
        world.performance_service().compute_performance(999, "week", now=MONDAY_AFTER)


def test_reconciling_service_records_missing_days(world):
    world.add_worker(100)
    world.add_checkin(100, date(2026, 2, 2))

    result = world.performance_service(reconcile=True).compute_performance(100, FIRST_WEEK, now=MONDAY_AFTER)

    assert [a.absence_date for a in world.absences.list_awaiting_worker(100)] == [
        date(2026, 2, 3),
        date(2026, 2, 4),
        date(2026, 2, 5),
        date(2026, 2, 6),
    ]
    assert result.score == 20


def test_history_is_newest_first(world):
    world.add_worker(100)
    checkin = world.add_checkin(100, date(2026, 2, 2))
    absence = world.add_absence(100, date(2026, 2, 3))

    history = world.performance_service().attendance_history(
        100, Period.custom(date(2026, 2, 2), date(2026, 2, 4)), now=MONDAY_AFTER
    )

    assert [r.day for r in history] == [date(2026, 2, 4), date(2026, 2, 3), date(2026, 2, 2)]
    assert history[2].source == "CHECKIN" and history[2].checkin_id == checkin.checkin_id
    assert history[1].absence_id == absence.absence_id
    assert history[1].absence_status == AbsenceStatus.PENDING_JUSTIFICATION
    assert history[0].source == "NONE" and history[0].status == AttendanceStatus.ABSENT


# ---- team grade ----


@pytest.fixture
def team_of_two(world):
    world.add_team(10, leader_id=200)
    world.add_team(11)
    world.add_worker(100)
    world.add_worker(101)
    world.add_worker(102, team_id=11)
    world.add_worker(200, role=Role.TEAM_LEAD)
    world.add_checkin(100, date(2026, 2, 2), readiness_score=80)
    world.add_checkin(101, date(2026, 2, 2), readiness_score=60, attendance_status=AttendanceStatus.YELLOW)
    return world


TWO_DAYS = Period.custom(date(2026, 2, 2), date(2026, 2, 3))


def test_team_grade(team_of_two):
    grade = team_of_two.performance_service().compute_team_grade(10, TWO_DAYS, now=MONDAY_AFTER)

    # Readiness 70; compliance (100 + 75 + 0 + 0) / 4 = 43.75.
    assert grade.average_readiness == 70
    assert grade.compliance == 44
    assert grade.score == 60
    assert grade.grade == "D"
    assert grade.member_count == 2
    assert grade.checkin_count == 2


def test_team_without_data_has_no_grade(team_of_two):
    team_of_two.add_team(12)

    grade = team_of_two.performance_service().compute_team_grade(12, TWO_DAYS, now=MONDAY_AFTER)

    assert grade.score is None
    assert grade.grade is None
    assert grade.member_count == 0


def test_workers_see_only_their_own_team(team_of_two):
    svc = team_of_two.performance_service()

    assert svc.compute_team_grade(10, TWO_DAYS, viewer_id=100, now=MONDAY_AFTER).team_id == 10
    with pytest.raises(AuthorizationError):
        svc.compute_team_grade(10, TWO_DAYS, viewer_id=102, now=MONDAY_AFTER)


def test_other_company_cannot_view(team_of_two):
    team_of_two.add_company(2)
    team_of_two.add_worker(400, role=Role.SUPERVISOR, team_id=None, company_id=2)

    with pytest.raises(AuthorizationError):
        team_of_two.performance_service().compute_team_grade(10, TWO_DAYS, viewer_id=400, now=MONDAY_AFTER)


def test_unknown_team(team_of_two):
    with pytest.raises(NotFoundError):
        team_of_two.performance_service().compute_team_grade(99, TWO_DAYS, now=MONDAY_AFTER)
