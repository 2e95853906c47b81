from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_user_id, error_response, login_required, server_error_response
from ..core.exceptions import DomainError
from ..container import Container
from .period import Period
from .service import DayRecord, PerformanceResult, TeamGradeResult


def _period_to_dict(p: Period) -> dict:
    return {"start": p.start.isoformat(), "end": p.end.isoformat()}


def performance_to_dict(r: PerformanceResult) -> dict:
    return {
        "workerId": r.worker_id,
        "period": _period_to_dict(r.period),
        "score": r.score,
        "grade": r.grade,
        "countedDays": r.counted_days,
        "workDays": r.work_days,
        "breakdown": r.breakdown,
    }


def day_record_to_dict(d: DayRecord) -> dict:
    return {
        "date": d.day.isoformat(),
        "status": d.status.value,
        "counted": d.counted,
        "weight": d.weight,
        "source": d.source,
        "checkinId": d.checkin_id,
        "absenceId": d.absence_id,
        "absenceStatus": d.absence_status.value if d.absence_status else None,
    }


def team_grade_to_dict(r: TeamGradeResult) -> dict:
    return {
        "teamId": r.team_id,
        "period": _period_to_dict(r.period),
        "score": r.score,
        "grade": r.grade,
        "averageReadiness": r.average_readiness,
        "compliance": r.compliance,
        "memberCount": r.member_count,
        "checkinCount": r.checkin_count,
    }


def register(app: Flask, container: Container) -> None:
    service = container.performance_service

    def _period_name() -> str:
        return request.args.get("period") or "month"

    @app.route("/api/performance/me", methods=["GET"], endpoint="performance_me")
    @login_required
    def my_performance():
        try:
            result = service.compute_performance(current_user_id(), _period_name())
            return jsonify({"success": True, "data": performance_to_dict(result)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/performance/history", methods=["GET"], endpoint="performance_history")
    @login_required
    def my_history():
        try:
            rows = service.attendance_history(current_user_id(), _period_name())
            return jsonify({"success": True, "data": [day_record_to_dict(d) for d in rows]}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/teams/<int:team_id>/grade", methods=["GET"], endpoint="team_grade")
    @login_required
    def team_grade(team_id: int):
        try:
            result = service.compute_team_grade(team_id, _period_name(), viewer_id=current_user_id())
            return jsonify({"success": True, "data": team_grade_to_dict(result)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()
