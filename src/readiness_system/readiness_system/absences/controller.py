from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_user_id, error_response, json_body, login_required, server_error_response
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_TEAM_HISTORY_LIMIT
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import Absence, AbsenceCounts, JustificationInput


def absence_to_dict(a: Absence) -> dict:
    return {
        "id": a.absence_id,
        "workerId": a.worker_id,
        "teamId": a.team_id,
        "absenceDate": a.absence_date.isoformat(),
        "status": a.status.value,
        "reasonCategory": a.reason_category.value if a.reason_category else None,
        "explanation": a.explanation,
        "justifiedAt": a.justified_at.isoformat() if a.justified_at else None,
        "reviewedBy": a.reviewed_by,
        "reviewedAt": a.reviewed_at.isoformat() if a.reviewed_at else None,
        "reviewNotes": a.review_notes,
    }


def counts_to_dict(c: AbsenceCounts) -> dict:
    return {
        "pendingJustification": c.pending_justification,
        "pendingReview": c.pending_review,
        "excused": c.excused,
        "unexcused": c.unexcused,
        "total": c.total,
    }


def _parse_justifications(data: dict) -> list[JustificationInput]:
    raw = data.get("justifications")
    if not isinstance(raw, list):
        raise ValidationError("justifications must be a list")

    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("Each justification must be an object")
        absence_id = entry.get("absenceId")
        if isinstance(absence_id, bool) or not isinstance(absence_id, int):
            raise ValidationError("absenceId must be an integer")
        if entry.get("explanation") is not None and not isinstance(entry.get("explanation"), str):
            raise ValidationError("explanation must be a string")
        items.append(
            JustificationInput(
                absence_id=absence_id,
                reason_category=entry.get("reasonCategory"),
                explanation=entry.get("explanation"),
            )
        )
    return items


def _query_limit(default: int) -> int:
    value = request.args.get("limit")
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError("limit must be an integer")


def register(app: Flask, container: Container) -> None:
    service = container.absence_service

    @app.route("/api/absences/my-pending", methods=["GET"], endpoint="absences_my_pending")
    @login_required
    def my_pending():
        try:
            worker_id = current_user_id()
            pending = service.list_pending_justifications(worker_id)
            return jsonify({
                "success": True,
                "data": [absence_to_dict(a) for a in pending],
                "hasBlocking": len(pending) > 0,
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/absences/justify", methods=["POST"], endpoint="absences_justify")
    @login_required
    def justify():
        try:
            items = _parse_justifications(json_body())
            updated = service.submit_justification(current_user_id(), items)
            return jsonify({
                "success": True,
                "message": f"{len(updated)} absence(s) justified",
                "data": [absence_to_dict(a) for a in updated],
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/absences/my-history", methods=["GET"], endpoint="absences_my_history")
    @login_required
    def my_history():
        try:
            worker_id = current_user_id()
            rows = service.get_history(worker_id, limit=_query_limit(DEFAULT_HISTORY_LIMIT))
            return jsonify({
                "success": True,
                "data": [absence_to_dict(a) for a in rows],
                "counts": counts_to_dict(service.get_status_counts(worker_id)),
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/absences/team-pending", methods=["GET"], endpoint="absences_team_pending")
    @login_required
    def team_pending():
        try:
            rows = service.list_pending_reviews(current_user_id())
            return jsonify({"success": True, "data": [absence_to_dict(a) for a in rows]}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/absences/<int:absence_id>/review", methods=["POST"], endpoint="absences_review")
    @login_required
    def review(absence_id: int):
        try:
            data = json_body()
            notes = data.get("notes")
            if notes is not None and not isinstance(notes, str):
                raise ValidationError("notes must be a string")
            absence = service.review_absence(absence_id, current_user_id(), data.get("action"), notes)
            return jsonify({
                "success": True,
                "message": f"Absence marked {absence.status.value}",
                "data": absence_to_dict(absence),
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/absences/team-history", methods=["GET"], endpoint="absences_team_history")
    @login_required
    def team_history():
        try:
            rows = service.list_team_history(
                current_user_id(),
                status=request.args.get("status") or None,
                limit=_query_limit(DEFAULT_TEAM_HISTORY_LIMIT),
            )
            return jsonify({"success": True, "data": [absence_to_dict(a) for a in rows]}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/absences/stats", methods=["GET"], endpoint="absences_stats")
    @login_required
    def stats():
        try:
            counts = service.get_absence_stats(current_user_id())
            return jsonify({"success": True, "data": counts_to_dict(counts)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()

    @app.route("/api/absences/<int:absence_id>", methods=["GET"], endpoint="absences_detail")
    @login_required
    def detail(absence_id: int):
        try:
            absence = service.get_absence(absence_id, current_user_id())
            return jsonify({"success": True, "data": absence_to_dict(absence)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response()
