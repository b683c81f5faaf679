from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_instant
from ..common.http import json_body, login_required
from ..container import Container
from ..users.model import Actor
from .model import ClassSession


def serialize_session(s: ClassSession) -> dict:
    rec = s.recurrence
    return {
        "id": s.session_id,
        "course": s.course_id,
        "startTime": format_instant(s.start_time),
        "endTime": format_instant(s.end_time),
        "room": s.room,
        "status": s.status.value,
        "recurrence": (
            {
                "frequency": rec.frequency.value,
                "interval": rec.interval,
                "count": rec.count,
                "until": format_instant(rec.until),
            }
            if rec
            else None
        ),
        "rescheduleReason": s.reschedule_reason,
        "cancelledReason": s.cancelled_reason,
        "createdBy": s.created_by,
        "updatedBy": s.updated_by,
        "createdAt": format_instant(s.created_at),
        "updatedAt": format_instant(s.updated_at),
    }


def register(app: Flask, container: Container) -> None:
    service = container.session_service

    @app.get("/api/sessions", endpoint="sessions_list")
    @login_required
    def sessions_list(actor: Actor):
        items = service.list_sessions(
            actor=actor,
            course_id=request.args.get("course"),
            status=request.args.get("status"),
        )
        return jsonify([serialize_session(s) for s in items])

    @app.get("/api/sessions/<int:session_id>", endpoint="sessions_get")
    @login_required
    def sessions_get(actor: Actor, session_id: int):
        return jsonify(serialize_session(service.get_session(actor=actor, session_id=session_id)))

    @app.post("/api/sessions", endpoint="sessions_create")
    @login_required
    def sessions_create(actor: Actor):
        data = json_body()
        created = service.create_single(
            actor=actor,
            course_id=data.get("course"),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            room=data.get("room"),
        )
        return jsonify(serialize_session(created)), 201

    @app.post("/api/sessions/recurring", endpoint="sessions_create_recurring")
    @login_required
    def sessions_create_recurring(actor: Actor):
        data = json_body()
        created = service.create_recurring(
            actor=actor,
            course_id=data.get("course"),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            frequency=data.get("frequency"),
            interval=data.get("interval"),
            count=data.get("count"),
            until=data.get("until"),
            room=data.get("room"),
        )
        return jsonify({"count": len(created), "sessions": [serialize_session(s) for s in created]}), 201

    @app.put("/api/sessions/<int:session_id>/reschedule", endpoint="sessions_reschedule")
    @login_required
    def sessions_reschedule(actor: Actor, session_id: int):
        data = json_body()
        updated = service.reschedule(
            actor=actor,
            session_id=session_id,
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            reason=data.get("reason"),
            room=data.get("room"),
        )
        return jsonify(serialize_session(updated))

    @app.put("/api/sessions/<int:session_id>/status", endpoint="sessions_update_status")
    @login_required
    def sessions_update_status(actor: Actor, session_id: int):
        data = json_body()
        updated = service.update_status(
            actor=actor,
            session_id=session_id,
            status=data.get("status"),
            cancelled_reason=data.get("cancelledReason"),
        )
        return jsonify(serialize_session(updated))
