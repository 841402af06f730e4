import pandas as pd
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from werkzeug.utils import secure_filename
from classcraft.attendance import save_session, get_session, list_sessions, get_monthly_matrix
from classcraft.extensions import limiter
from classcraft.utils.audit import log_event
from classcraft.utils.decorators import role_required, get_current_caller

attendance_bp = Blueprint('attendance', __name__)


@attendance_bp.route('/save', methods=['POST'])
@jwt_required()
@role_required("admin", "teacher")
@limiter.limit("30 per minute")
def save_attendance():
    caller = get_current_caller()
    data = request.get_json(silent=True) or {}

    session = save_session(caller, data.get("className"), data.get("date"), data.get("records"))

    log_event(
        "ATTENDANCE_SAVED",
        user_id=caller.user_id,
        ip=request.remote_addr,
        description=f"{session.school_class.name} {session.day.isoformat()} ({len(session.records)} records)",
    )
    return jsonify({
        "message": "Attendance saved successfully",
        "attendance": session.to_dict()
    }), 201


# GET /attendance/history?className=Grade%208%20-%20A&date=2025-11-10
@attendance_bp.route('/history', methods=['GET'])
@jwt_required()
@role_required("admin", "teacher")
def attendance_history():
    caller = get_current_caller()
    summary = get_session(caller, request.args.get("className"), request.args.get("date") or None)
    return jsonify(summary), 200


@attendance_bp.route('/class/<class_name>', methods=['GET'])
@jwt_required()
@role_required("admin", "teacher")
def attendance_by_class(class_name):
    caller = get_current_caller()
    return jsonify(list_sessions(caller, class_name)), 200


def _monthly_from_args(caller):
    return get_monthly_matrix(
        caller,
        request.args.get("className"),
        request.args.get("year", type=int),
        request.args.get("month", type=int),
    )


# GET /attendance/monthly?className=8A&year=2025&month=11
@attendance_bp.route('/monthly', methods=['GET'])
@jwt_required()
@role_required("admin", "teacher")
def monthly_attendance():
    caller = get_current_caller()
    return jsonify(_monthly_from_args(caller)), 200


@attendance_bp.route('/monthly/export', methods=['GET'])
@jwt_required()
@role_required("admin", "teacher")
def monthly_attendance_export():
    caller = get_current_caller()
    matrix = _monthly_from_args(caller)

    day_columns = [str(d) for d in matrix["days"]]
    columns = ["enrollNo", "name", "studentId", *day_columns, "present", "absent"]
    rows = []
    for student in matrix["students"]:
        row = {
            "enrollNo": student["enrollNo"],
            "name": student["name"],
            "studentId": student["studentId"],
            "present": student["present"],
            "absent": student["absent"],
        }
        row.update({str(d): status for d, status in student["daily"].items()})
        rows.append(row)

    df = pd.DataFrame(rows, columns=columns)
    csv_bytes = df.to_csv(index=False).encode("utf-8-sig")

    filename = secure_filename(f"attendance_{matrix['className']}_{matrix['year']}_{matrix['month']:02d}.csv")
    return current_app.response_class(
        csv_bytes,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
