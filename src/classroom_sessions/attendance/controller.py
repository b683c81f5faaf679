from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_instant, now_utc, parse_instant
from ..common.http import json_body, login_required
from ..common.validators import require_id
from ..container import Container
from ..users.model import Actor
from .model import AttendanceRecord, AttendanceStats

# JSON keys accepted by PUT /api/attendance/<id>, mapped to service field names.
_UPDATE_FIELDS = {
    "date": "date",
    "session": "session_label",
    "notes": "notes",
    "studentRecords": "student_records",
    "bulkStatus": "bulk_status",
}


def serialize_record(r: AttendanceRecord) -> dict:
    return {
        "id": r.attendance_id,
        "course": r.course_id,
        "date": r.attendance_date.isoformat(),
        "markedAt": format_instant(r.marked_at),
        "session": r.session_label,
        "classSession": r.class_session_id,
        "markedBy": r.marked_by,
        "notes": r.notes,
        "studentRecords": [
            {"student": sr.student_id, "status": sr.status.value, "remarks": sr.remarks}
            for sr in r.student_records
        ],
        "createdAt": format_instant(r.created_at),
        "updatedAt": format_instant(r.updated_at),
    }


def serialize_stats(s: AttendanceStats) -> dict:
    return {
        "totalSessions": s.total_sessions,
        "present": s.present,
        "absent": s.absent,
        "late": s.late,
        "totalStudentMarks": s.total_student_marks,
        "percentage": s.percentage,
    }


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.post("/api/attendance", endpoint="attendance_mark")
    @login_required
    def attendance_mark(actor: Actor):
        data = json_body()
        created = service.mark(
            actor=actor,
            course_id=data.get("course"),
            date=data.get("date"),
            student_records=data.get("studentRecords"),
            bulk_status=data.get("bulkStatus"),
            session_label=data.get("session"),
            notes=data.get("notes"),
        )
        return jsonify(serialize_record(created)), 201

    @app.put("/api/attendance/<int:attendance_id>", endpoint="attendance_update")
    @login_required
    def attendance_update(actor: Actor, attendance_id: int):
        data = json_body()
        fields = {name: data[key] for key, name in _UPDATE_FIELDS.items() if key in data}
        updated = service.update(actor=actor, attendance_id=attendance_id, fields=fields)
        return jsonify(serialize_record(updated))

    @app.delete("/api/attendance/<int:attendance_id>", endpoint="attendance_delete")
    @login_required
    def attendance_delete(actor: Actor, attendance_id: int):
        deleted_id = service.delete(actor=actor, attendance_id=attendance_id)
        return jsonify({"id": deleted_id})

    @app.get("/api/attendance/course/<int:course_id>", endpoint="attendance_by_course")
    @login_required
    def attendance_by_course(actor: Actor, course_id: int):
        items = service.list_for_course(
            actor=actor,
            course_id=course_id,
            on=request.args.get("date"),
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
        )
        return jsonify([serialize_record(r) for r in items])

    @app.get("/api/attendance/student/<int:student_id>", endpoint="attendance_by_student")
    @login_required
    def attendance_by_student(actor: Actor, student_id: int):
        items = service.list_for_student(actor=actor, student_id=student_id)
        return jsonify([serialize_record(r) for r in items])

    @app.get("/api/attendance/my-attendance", endpoint="attendance_mine")
    @login_required
    def attendance_mine(actor: Actor):
        items = service.list_for_student(actor=actor, student_id=actor.user_id)
        return jsonify([serialize_record(r) for r in items])

    @app.get("/api/attendance/stats/<int:course_id>", endpoint="attendance_stats")
    @login_required
    def attendance_stats(actor: Actor, course_id: int):
        return jsonify(serialize_stats(service.course_stats(actor=actor, course_id=course_id)))

    @app.get("/api/attendance/report", endpoint="attendance_report")
    @login_required
    def attendance_report(actor: Actor):
        items = service.report(
            actor=actor,
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
            course_id=request.args.get("courseId"),
            student_id=request.args.get("studentId"),
        )
        return jsonify([serialize_record(r) for r in items])

    @app.get("/api/attendance/window", endpoint="attendance_window")
    @login_required
    def attendance_window(actor: Actor):
        course = container.course_access.ensure_access(
            require_id(request.args.get("course"), "course id"), actor
        )
        reference_time = parse_instant(request.args.get("at")) or now_utc()

        decision = container.window_gate.check_allowed(course=course, actor=actor, reference_time=reference_time)
        return jsonify(
            {
                "allowed": decision.allowed,
                "sessionId": decision.session_id,
                "reason": decision.reason,
                "at": format_instant(reference_time),
            }
        )
