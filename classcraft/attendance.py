"""Attendance sessions: the per-class daily upsert, day reads and the monthly matrix."""
from flask import current_app
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from classcraft.errors import StorageError, ValidationError
from classcraft.extensions import db
from classcraft.models import AttendanceSession, AttendanceStatus, MARK_STATUSES
from classcraft.utils.access_control import check_class_access
from classcraft.utils.dates import days_in_month, month_range, normalize_day, utcnow
from classcraft.utils.roster import find_students_by_class


def _require_class_name(class_name):
    if not isinstance(class_name, str) or not class_name.strip():
        raise ValidationError("className is required")
    return class_name.strip()


def validate_records(records):
    """Checks the shape of submitted marks and returns clean copies."""
    if not isinstance(records, list) or not records:
        raise ValidationError("records must be a non-empty list")

    cleaned = []
    seen = set()
    for index, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            raise ValidationError(f"Record {index} must be an object")

        student_id = record.get("studentId")
        if student_id is None or not str(student_id).strip():
            raise ValidationError(f"Record {index} is missing studentId")
        student_id = str(student_id).strip()

        status = record.get("status")
        if status not in MARK_STATUSES:
            raise ValidationError(f"Record {index} has invalid status {status!r}, expected Present or Absent")

        if student_id in seen:
            raise ValidationError(f"Student {student_id} appears more than once")
        seen.add(student_id)

        for field in ("studentName", "enrollNo"):
            if record.get(field) is not None and not isinstance(record[field], str):
                raise ValidationError(f"Record {index} has a non-text {field}")

        cleaned.append({
            "studentId": student_id,
            "studentName": record.get("studentName"),
            "enrollNo": record.get("enrollNo"),
            "status": status,
        })
    return cleaned


def attach_roster(records, roster):
    """Rejects marks for students outside the roster and fills in names and enrollment numbers."""
    by_id = {student.id: student for student in roster}

    outsiders = [r["studentId"] for r in records if r["studentId"] not in by_id]
    if outsiders:
        raise ValidationError(f"Students not enrolled in this class: {', '.join(outsiders)}")

    for record in records:
        student = by_id[record["studentId"]]
        record["studentName"] = record["studentName"] or student.name
        record["enrollNo"] = record["enrollNo"] or student.enroll_no
    return records


def _upsert_statement(dialect_name, values):
    """Single-statement insert-or-replace for engines that have one."""
    replaced = ("records", "recorded_at", "recorded_by")

    if dialect_name in ("postgresql", "sqlite"):
        insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
        stmt = insert(AttendanceSession).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=["class_id", "day"],
            set_={column: stmt.excluded[column] for column in replaced},
        )

    if dialect_name in ("mysql", "mariadb"):
        stmt = mysql.insert(AttendanceSession).values(**values)
        return stmt.on_duplicate_key_update(
            **{column: stmt.inserted[column] for column in replaced}
        )

    return None


def _insert_or_replace(values):
    try:
        db.session.add(AttendanceSession(**values))
        db.session.flush()
    except IntegrityError:
        # lost the race for (class_id, day): the other writer's row is replaced
        db.session.rollback()
        existing = AttendanceSession.query.filter_by(class_id=values["class_id"], day=values["day"]).one()
        existing.records = values["records"]
        existing.recorded_at = values["recorded_at"]
        existing.recorded_by = values["recorded_by"]


def upsert_session(class_id, day, records, recorded_by=None):
    """
    Stores the full-day marks of a class, replacing any earlier session of that day.

    The write is keyed on (class_id, day) and relies on the unique constraint,
    so repeating it with the same payload leaves the same stored state.
    """
    values = {
        "class_id": class_id,
        "day": day,
        "records": records,
        "recorded_at": utcnow(),
        "recorded_by": recorded_by,
    }

    try:
        stmt = _upsert_statement(db.session.get_bind().dialect.name, values)
        if stmt is not None:
            db.session.execute(stmt)
        else:
            _insert_or_replace(values)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error("Saving attendance for class %s on %s failed: %s", class_id, day, exc)
        raise StorageError("Could not save attendance") from exc

    return AttendanceSession.query.filter_by(class_id=class_id, day=day).one()


def save_session(caller, class_name, day, records):
    class_name = _require_class_name(class_name)
    cleaned = validate_records(records)
    day = normalize_day(day if day not in (None, "") else None)

    school_class = check_class_access(class_name, caller)
    roster = find_students_by_class(school_class.id)
    attach_roster(cleaned, roster)

    session = upsert_session(school_class.id, day, cleaned, recorded_by=caller.user_id)
    current_app.logger.info(
        "Attendance saved for %s on %s (%d records) by user %s",
        school_class.name, day.isoformat(), len(cleaned), caller.user_id,
    )
    return session


def summarize_session(session):
    present, absent = session.tally()
    return {
        "className": session.school_class.name,
        "date": session.day.isoformat(),
        "total": len(session.records),
        "present": present,
        "absent": absent,
        "records": [
            {
                "id": index,
                "studentId": record.get("studentId"),
                "name": record.get("studentName"),
                "enrollNo": record.get("enrollNo"),
                "status": record.get("status"),
            }
            for index, record in enumerate(session.records, start=1)
        ],
    }


def empty_summary(class_name, day=None):
    return {
        "className": class_name,
        "date": day.isoformat() if day else None,
        "total": 0,
        "present": 0,
        "absent": 0,
        "records": [],
    }


def get_session(caller, class_name, day=None):
    """One day's session, or the latest one when no day is given."""
    class_name = _require_class_name(class_name)
    if day:
        day = normalize_day(day)

    school_class = check_class_access(class_name, caller)
    query = AttendanceSession.query.filter_by(class_id=school_class.id)

    if day:
        session = query.filter_by(day=day).first()
    else:
        session = query.order_by(AttendanceSession.day.desc()).first()

    if session is None:
        return empty_summary(school_class.name, day)
    return summarize_session(session)


def list_sessions(caller, class_name):
    class_name = _require_class_name(class_name)
    school_class = check_class_access(class_name, caller)

    sessions = (
        AttendanceSession.query
        .filter_by(class_id=school_class.id)
        .order_by(AttendanceSession.day.desc())
        .all()
    )
    return [s.to_dict(class_name=school_class.name) for s in sessions]


def sessions_in_range(class_id, start, end=None):
    query = AttendanceSession.query.filter(
        AttendanceSession.class_id == class_id,
        AttendanceSession.day >= start,
    )
    if end is not None:
        query = query.filter(AttendanceSession.day < end)
    return query.order_by(AttendanceSession.day).all()


def build_monthly_matrix(roster, sessions, year, month):
    """
    Folds a month of sessions onto a roster snapshot.

    Every roster student gets a row and every day of the month a cell; days
    without a mark stay NotRecorded. Marks for students no longer on the
    roster are dropped.
    """
    day_count = days_in_month(year, month)
    days = list(range(1, day_count + 1))

    lookup = {}
    for session in sessions:
        if session.day.year != year or session.day.month != month:
            continue
        for record in session.records or []:
            lookup.setdefault(str(record.get("studentId")), {})[session.day.day] = record.get("status")

    students = []
    for student in sorted(roster, key=lambda s: (s.name, s.id)):
        marks = lookup.get(student.id, {})
        daily = {d: marks.get(d, AttendanceStatus.not_recorded.value) for d in days}
        statuses = list(daily.values())
        students.append({
            "studentId": student.id,
            "name": student.name,
            "enrollNo": student.enroll_no,
            "daily": daily,
            "present": statuses.count(AttendanceStatus.present.value),
            "absent": statuses.count(AttendanceStatus.absent.value),
        })

    return {"year": year, "month": month, "days": days, "students": students}


def get_monthly_matrix(caller, class_name, year, month):
    class_name = _require_class_name(class_name)
    start, end = month_range(year, month)

    school_class = check_class_access(class_name, caller)
    roster = find_students_by_class(school_class.id)
    sessions = sessions_in_range(school_class.id, start, end)

    matrix = build_monthly_matrix(roster, sessions, year, month)
    return {"className": school_class.name, **matrix}
