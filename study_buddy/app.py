from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from . import db, matching, sessions
from .config import get_settings
from .errors import FormatError, InvalidRange, NotFound, StudyBuddyError, ValidationError
from .logger import configure_logging
from .models import Student, StudySession, TimeSlot, Weekday, parse_time

logger = logging.getLogger(__name__)

STUDENT_COLUMNS = ["id", "name", "email"]
PROPOSED_SESSION_COLUMNS = ["id", "course", "slot", "status", "participants"]
SESSION_COLUMNS = ["id", "course", "slot", "status", "participants", "inviter"]


def student_to_dict(s: Student) -> Dict[str, Any]:
    return {
        "id": s.id,
        "name": s.name,
        "email": s.email,
        "courses": s.sorted_courses(),
        "availability": [str(slot) for slot in s.availability],
    }


def session_to_dict(ss: StudySession) -> Dict[str, Any]:
    return {
        "id": ss.id,
        "course": ss.course_code,
        "slot": str(ss.slot),
        "status": str(ss.status),
        "participants": ss.sorted_participants(),
        "inviter": ss.inviter_id,
    }


def _student_row(s: Student) -> List[str]:
    return [s.id, s.name, s.email]


def _session_row(ss: StudySession) -> List[str]:
    return [
        ss.id,
        ss.course_code,
        str(ss.slot),
        str(ss.status),
        db.join_list(ss.sorted_participants()),
        ss.inviter_id,
    ]


def _wants_csv() -> bool:
    return request.args.get("format", "").lower() == "csv"


def _csv_response(header: List[str], rows: Iterable[List[str]]) -> Response:
    return Response(db.format_rows(header, rows), mimetype="text/csv")


def _body() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def _require(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None or not str(value).strip():
        raise ValidationError(f"{key} is required")
    return str(value)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def _parse_ids(value: Any) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value or [] if str(v).strip()]


def _slot_args(data: Dict[str, Any]) -> tuple:
    return (
        Weekday.parse(_require(data, "dow")),
        parse_time(_require(data, "start")),
        parse_time(_require(data, "end")),
    )


def create_app(data_dir: Optional[Path] = None) -> Flask:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    CORS(app)

    store = db.Repository(data_dir or settings.data_dir)
    try:
        store.load()
    except StudyBuddyError as exc:
        logger.warning("Data files are malformed, continuing with a partial store: %s", exc)

    app.extensions["study_buddy_store"] = store

    # --- Errors ---

    @app.errorhandler(NotFound)
    def handle_not_found(exc: NotFound) -> Any:
        logger.warning("Not found: %s", exc.message)
        return jsonify({"error": exc.message}), 404

    @app.errorhandler(InvalidRange)
    @app.errorhandler(FormatError)
    @app.errorhandler(ValidationError)
    def handle_bad_request(exc: StudyBuddyError) -> Any:
        logger.warning("Rejected request: %s", exc.message)
        return jsonify({"error": exc.message}), 400

    @app.errorhandler(OSError)
    def handle_os_error(exc: OSError) -> Any:
        logger.error("Filesystem error: %s", exc)
        return jsonify({"error": f"could not write data files: {exc}"}), 500

    @app.get("/api/health")
    def health() -> Any:
        return {"status": "ok"}

    # --- Students ---

    @app.get("/api/students")
    def list_students() -> Any:
        return jsonify([student_to_dict(s) for s in store.students()])

    @app.post("/api/students")
    def create_student() -> Any:
        data = _body()
        student = matching.create_profile(store, data.get("name"), data.get("email"))
        store.save()
        return jsonify(student_to_dict(student)), 201

    @app.get("/api/students/<student_id>")
    def get_student(student_id: str) -> Any:
        return jsonify(student_to_dict(store.find_student(student_id)))

    @app.post("/api/students/<student_id>/courses")
    def add_course(student_id: str) -> Any:
        student = matching.add_course(store, student_id, _require(_body(), "course"))
        store.save()
        return jsonify(student_to_dict(student))

    @app.delete("/api/students/<student_id>/courses/<course>")
    def remove_course(student_id: str, course: str) -> Any:
        student = matching.remove_course(store, student_id, course)
        store.save()
        return jsonify(student_to_dict(student))

    @app.post("/api/students/<student_id>/availability")
    def add_availability(student_id: str) -> Any:
        student = matching.add_availability(store, student_id, *_slot_args(_body()))
        store.save()
        return jsonify(student_to_dict(student))

    @app.delete("/api/students/<student_id>/availability")
    def remove_availability(student_id: str) -> Any:
        data = _body() or request.args.to_dict()
        student = matching.remove_availability(store, student_id, *_slot_args(data))
        store.save()
        return jsonify(student_to_dict(student))

    # --- Matching ---

    @app.get("/api/courses/<course>/classmates")
    def classmates(course: str) -> Any:
        students = matching.classmates_in_course(store, course)
        if _wants_csv():
            return _csv_response(STUDENT_COLUMNS, [_student_row(s) for s in students])
        return jsonify([student_to_dict(s) for s in students])

    @app.get("/api/students/<student_id>/matches")
    def suggest_matches(student_id: str) -> Any:
        course = _require(request.args, "course")
        students = matching.suggest_matches(store, student_id, course)
        if _wants_csv():
            return _csv_response(STUDENT_COLUMNS, [_student_row(s) for s in students])
        return jsonify([student_to_dict(s) for s in students])

    # --- Sessions ---

    @app.get("/api/students/<student_id>/sessions")
    def list_sessions(student_id: str) -> Any:
        found = sessions.list_sessions_for(store, student_id)
        if _wants_csv():
            return _csv_response(SESSION_COLUMNS, [_session_row(ss) for ss in found])
        return jsonify([session_to_dict(ss) for ss in found])

    @app.post("/api/sessions")
    def propose_session() -> Any:
        data = _body()
        session = sessions.propose_session(
            store,
            _require(data, "id"),
            _require(data, "course"),
            TimeSlot.parse(_require(data, "slot")),
            _parse_ids(data.get("invitees")),
        )
        store.save()
        if _wants_csv():
            return _csv_response(PROPOSED_SESSION_COLUMNS, [_session_row(session)[:5]]), 201
        return jsonify(session_to_dict(session)), 201

    @app.post("/api/sessions/<session_id>/respond")
    def respond(session_id: str) -> Any:
        data = _body()
        session = sessions.respond_to_session(
            store, _require(data, "id"), session_id, _parse_bool(data.get("accept"))
        )
        store.save()
        return jsonify(session_to_dict(session))

    # --- Export ---

    @app.post("/api/export")
    def export() -> Any:
        out_dir = Path(_body().get("dir") or settings.export_dir)
        exported = store.export_to(out_dir)
        return {"exported": str(exported.resolve())}

    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    app.run(debug=True)
