from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify

from ..common.web import current_user_id, error_response, json_body, login_required, server_error_response
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from ..exemptions.model import Exemption, LeaveStatus
from .model import Checkin
from .readiness import ReadinessMetrics


def checkin_to_dict(c: Checkin) -> dict:
    return {
        "id": c.checkin_id,
        "workerId": c.worker_id,
        "teamId": c.team_id,
        "date": c.local_date.isoformat(),
        "mood": c.mood,
        "stress": c.stress,
        "sleep": c.sleep,
        "physicalHealth": c.physical_health,
        "readinessScore": c.readiness_score,
        "readinessStatus": c.readiness_status.value,
        "attendanceStatus": c.attendance_status.value,
        "minutesLate": c.minutes_late,
        "notes": c.note,
        "createdAt": c.created_at.isoformat(),
        "lowScoreReason": c.low_score_reason.value if c.low_score_reason else None,
        "lowScoreDetails": c.low_score_details,
        "isReturning": c.is_returning,
    }


def _exemption_to_dict(e: Optional[Exemption]) -> Optional[dict]:
    if e is None:
        return None
    return {
        "id": e.exemption_id,
        "type": e.exemption_type.value,
        "startDate": e.start_date.isoformat() if e.start_date else None,
        "endDate": e.end_date.isoformat() if e.end_date else None,
        "reason": e.reason,
    }


def leave_status_to_dict(s: LeaveStatus) -> dict:
    return {
        "isOnLeave": s.is_on_leave,
        "isReturning": s.is_returning,
        "currentException": _exemption_to_dict(s.current_exemption),
        "lastException": _exemption_to_dict(s.last_exemption),
    }


def _optional_str(data: dict, key: str):
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value


def register(app: Flask, container: Container) -> None:
    service = container.checkin_service

    @app.route("/api/checkins", methods=["POST"], endpoint="checkins_submit")
    @login_required
    def submit_checkin():
        try:
            data = json_body()
            metrics = ReadinessMetrics(
                mood=data.get("mood"),
                stress=data.get("stress"),
                sleep=data.get("sleep"),
                physical_health=data.get("physicalHealth"),
            )
            checkin = service.submit_checkin(current_user_id(), metrics, _optional_str(data, "notes"))
            return jsonify({"success": True, "data": checkin_to_dict(checkin)}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/checkins/<int:checkin_id>/low-score-reason", methods=["PATCH"], endpoint="checkins_low_score_reason")
    @login_required
    def low_score_reason(checkin_id: int):
        try:
            data = json_body()
            checkin = service.set_low_score_reason(
                current_user_id(),
                checkin_id,
                data.get("reason"),
                _optional_str(data, "details"),
            )
            return jsonify({"success": True, "data": checkin_to_dict(checkin)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/checkins/leave-status", methods=["GET"], endpoint="checkins_leave_status")
    @login_required
    def leave_status():
        try:
            status = service.get_leave_status(current_user_id())
            return jsonify({"success": True, "data": leave_status_to_dict(status)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()
