from __future__ import annotations

from dataclasses import dataclass

from .absences.mysql_absence_repository import MySQLAbsenceRepository
from .absences.reconciler import AbsenceReconciler
from .absences.service import AbsenceService
from .attendance.factory import AttendanceStrategyFactory
from .checkins.mysql_checkin_repository import MySQLCheckinRepository
from .checkins.service import CheckinService
from .core.constants import DEFAULT_ABSENCE_LOOKBACK_DAYS, DEFAULT_LATE_GRACE_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .exemptions.mysql_exemption_repository import MySQLExemptionRepository
from .performance.service import PerformanceService
from .teams.mysql_team_repository import MySQLHolidayRepository, MySQLTeamRepository
from .workers.mysql_worker_repository import MySQLWorkerRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    workers_repo: MySQLWorkerRepository
    teams_repo: MySQLTeamRepository
    holidays_repo: MySQLHolidayRepository
    exemptions_repo: MySQLExemptionRepository
    checkins_repo: MySQLCheckinRepository
    absences_repo: MySQLAbsenceRepository

    absence_reconciler: AbsenceReconciler
    absence_service: AbsenceService
    checkin_service: CheckinService
    performance_service: PerformanceService


def build_container(
    *,
    db_config: dict,
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    absence_lookback_days: int = DEFAULT_ABSENCE_LOOKBACK_DAYS,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_settings(db_config))

    workers_repo = MySQLWorkerRepository(conn)
    teams_repo = MySQLTeamRepository(conn)
    holidays_repo = MySQLHolidayRepository(conn)
    exemptions_repo = MySQLExemptionRepository(conn)
    checkins_repo = MySQLCheckinRepository(conn)
    absences_repo = MySQLAbsenceRepository(conn)

    absence_reconciler = AbsenceReconciler(
        workers_repo,
        teams_repo,
        checkins_repo,
        exemptions_repo,
        holidays_repo,
        absences_repo,
        lookback_days=absence_lookback_days,
    )
    absence_service = AbsenceService(absences_repo, workers_repo, teams_repo, absence_reconciler)
    checkin_service = CheckinService(
        checkins_repo,
        workers_repo,
        teams_repo,
        exemptions_repo,
        holidays_repo,
        absences_repo,
        absence_reconciler,
        strategy_factory=AttendanceStrategyFactory(),
        grace_minutes=late_grace_minutes,
    )
    performance_service = PerformanceService(
        workers_repo,
        teams_repo,
        checkins_repo,
        exemptions_repo,
        holidays_repo,
        absences_repo,
        absence_reconciler,
    )

    return Container(
        conn=conn,
        workers_repo=workers_repo,
        teams_repo=teams_repo,
        holidays_repo=holidays_repo,
        exemptions_repo=exemptions_repo,
        checkins_repo=checkins_repo,
        absences_repo=absences_repo,
        absence_reconciler=absence_reconciler,
        absence_service=absence_service,
        checkin_service=checkin_service,
        performance_service=performance_service,
    )
