import io
from types import SimpleNamespace

import pandas as pd
import pytest
from flask import g
from flask_jwt_extended import create_access_token, verify_jwt_in_request

from classcraft.models import AttendanceSession, AuditLog
from classcraft.utils.dates import normalize_day
from classcraft.utils.decorators import get_current_caller
from classcraft.utils.logging import log_rate_limit_violation


def _save(client, headers, class_name="8A", date="2025-11-10", **statuses):
    records = [{"studentId": sid, "status": s} for sid, s in statuses.items()]
    return client.post(
        "/attendance/save",
        json={"className": class_name, "date": date, "records": records},
        headers=headers,
    )


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "message" in response.get_json()


def test_save_and_read_back(client, auth_headers):
    headers = auth_headers("teacher")

    response = _save(client, headers, s1="Present", s2="Absent")
    assert response.status_code == 201
    body = response.get_json()
    assert body["message"] == "Attendance saved successfully"
    assert body["attendance"]["className"] == "8A"
    assert body["attendance"]["date"] == "2025-11-10"
    assert body["attendance"]["recordedAt"].endswith("+00:00")

    history = client.get("/attendance/history?className=8A&date=2025-11-10", headers=headers).get_json()
    assert history["total"] == 2
    assert history["present"] == 1
    assert history["absent"] == 1


def test_resave_replaces_the_day(client, auth_headers):
    headers = auth_headers("teacher")
    _save(client, headers, s1="Present", s2="Absent")
    _save(client, headers, date="2025-11-10T18:45:00Z", s1="Absent")

    history = client.get("/attendance/history?className=8A&date=2025-11-10", headers=headers).get_json()

    assert history["total"] == 1
    assert history["absent"] == 1
    assert AttendanceSession.query.count() == 1


def test_history_without_session(client, auth_headers):
    response = client.get("/attendance/history?className=8A", headers=auth_headers("teacher"))
    assert response.status_code == 200
    assert response.get_json() == {
        "className": "8A", "date": None, "total": 0, "present": 0, "absent": 0, "records": [],
    }


def test_class_sessions_newest_first(client, auth_headers):
    headers = auth_headers("teacher")
    _save(client, headers, date="2025-11-03", s1="Present")
    _save(client, headers, date="2025-11-07", s2="Absent")

    sessions = client.get("/attendance/class/8A", headers=headers).get_json()

    assert [s["date"] for s in sessions] == ["2025-11-07", "2025-11-03"]


def test_monthly_matrix(client, auth_headers):
    headers = auth_headers("teacher")
    _save(client, headers, s1="Present", s2="Absent")

    response = client.get("/attendance/monthly?className=8A&year=2025&month=11", headers=headers)
    assert response.status_code == 200
    matrix = response.get_json()

    assert matrix["className"] == "8A"
    assert len(matrix["days"]) == 30
    rows = {row["studentId"]: row for row in matrix["students"]}
    assert len(rows) == 3
    assert rows["s1"]["daily"]["10"] == "Present"
    assert rows["s2"]["daily"]["10"] == "Absent"
    assert rows["s3"]["daily"]["10"] == "NotRecorded"
    assert rows["s2"]["absent"] == 1


def test_monthly_export_csv(client, auth_headers):
    headers = auth_headers("admin")
    _save(client, headers, s1="Present", s2="Absent")

    response = client.get("/attendance/monthly/export?className=8A&year=2025&month=11", headers=headers)

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert "attendance_8A_2025_11.csv" in response.headers["Content-Disposition"]

    frame = pd.read_csv(io.StringIO(response.data.decode("utf-8-sig")))
    assert list(frame.columns[:3]) == ["enrollNo", "name", "studentId"]
    assert list(frame.columns[-2:]) == ["present", "absent"]
    assert list(frame["name"]) == ["Alice", "Bob", "Cara"]
    assert frame.loc[0, "10"] == "Present"
    assert frame.loc[2, "10"] == "NotRecorded"
    assert frame.loc[1, "absent"] == 1


@pytest.mark.parametrize("query", [
    "className=8A&year=2025&month=13",
    "className=8A&year=2025",
    "className=8A&year=abc&month=11",
    "year=2025&month=11",
])
def test_monthly_bad_input(client, auth_headers, query):
    response = client.get(f"/attendance/monthly?{query}", headers=auth_headers("teacher"))
    assert response.status_code == 400
    assert "message" in response.get_json()


def test_save_rejects_bad_status(client, auth_headers):
    response = _save(client, auth_headers("teacher"), s1="Late")
    assert response.status_code == 400


def test_save_rejects_student_outside_roster(client, auth_headers):
    response = _save(client, auth_headers("teacher"), s1="Present", s4="Present")
    assert response.status_code == 400
    assert AttendanceSession.query.count() == 0


def test_save_rejects_bad_date(client, auth_headers):
    response = _save(client, auth_headers("teacher"), date="10/11/2025", s1="Present")
    assert response.status_code == 400


def test_save_without_body(client, auth_headers):
    response = client.post("/attendance/save", data="not json", headers=auth_headers("teacher"))
    assert response.status_code == 400


def test_unknown_class_is_404(client, auth_headers):
    assert _save(client, auth_headers("admin"), class_name="9Z", s1="Present").status_code == 404
    assert client.get("/attendance/class/9Z", headers=auth_headers("admin")).status_code == 404


@pytest.mark.parametrize("path", [
    "/attendance/history?className=8A",
    "/attendance/class/8A",
    "/attendance/monthly?className=8A&year=2025&month=11",
    "/classes/8A/students",
])
def test_non_owner_teacher_is_forbidden(client, auth_headers, path):
    assert client.get(path, headers=auth_headers("other_teacher")).status_code == 403


def test_students_are_forbidden(client, auth_headers):
    assert _save(client, auth_headers("student"), s1="Present").status_code == 403
    assert client.get("/attendance/history?className=8A", headers=auth_headers("student")).status_code == 403


def test_missing_token_is_401(client):
    response = client.get("/attendance/history?className=8A")
    assert response.status_code == 401
    assert response.get_json() == {"message": "No token"}


def test_garbage_token_is_401(client):
    response = client.get("/attendance/history?className=8A", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_unknown_user_is_401(client):
    token = create_access_token(identity="9999")
    response = client.get("/attendance/history?className=8A", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.parametrize("who,names", [
    ("admin", ["8A", "8B"]),
    ("teacher", ["8A"]),
    ("other_teacher", ["8B"]),
    ("student", []),
])
def test_my_classes(client, auth_headers, who, names):
    response = client.get("/classes/my-classes", headers=auth_headers(who))
    assert response.status_code == 200
    assert [c["name"] for c in response.get_json()] == names


def test_class_roster(client, auth_headers):
    response = client.get("/classes/8A/students", headers=auth_headers("teacher"))

    assert response.status_code == 200
    roster = response.get_json()
    assert [s["enrollNo"] for s in roster] == ["A01", "A02", "A03"]
    assert "userId" not in roster[0]
    assert roster[0]["classId"] is not None


def test_save_is_written_to_the_audit_file(client, auth_headers, app):
    _save(client, auth_headers("teacher"), s1="Present")

    with open(app.config["AUDIT_LOG_FILE"]) as audit_file:
        lines = audit_file.readlines()

    assert len(lines) == 1
    assert "EVENT: ATTENDANCE_SAVED" in lines[0]
    assert "8A 2025-11-10 (1 records)" in lines[0]


def test_rate_limit_breach_is_recorded(app):
    with app.test_request_context("/attendance/save", method="POST"):
        response = log_rate_limit_violation(SimpleNamespace(limit="30 per 1 minute"))

    assert response.status_code == 429
    entry = AuditLog.query.one()
    assert entry.user_id is None
    assert entry.action.startswith("RATE_LIMIT_EXCEEDED: POST /attendance/save")


def test_denied_access_is_written_to_the_audit_file(client, auth_headers, app):
    client.get("/attendance/class/8A", headers=auth_headers("other_teacher"))

    with open(app.config["AUDIT_LOG_FILE"]) as audit_file:
        line = audit_file.read()

    assert "[WARNING] EVENT: ACCESS_DENIED" in line
    assert "GET /attendance/class/8A" in line


def test_rate_limit_breach_returns_the_slow_down_message(limited_app):
    client = limited_app.test_client()
    teacher_id = limited_app.config["TEST_USER_IDS"]["teacher"]
    headers = {"Authorization": f"Bearer {create_access_token(identity=str(teacher_id))}"}

    statuses = [_save(client, headers, s1="Present").status_code for _ in range(30)]
    response = _save(client, headers, s1="Present")

    assert statuses == [201] * 30
    assert response.status_code == 429
    assert response.get_json() == {"message": "Rate limit exceeded. Please slow down."}
    entry = AuditLog.query.one()
    assert entry.user_id == teacher_id
    assert "POST /attendance/save" in entry.action


@pytest.mark.parametrize("extra", [
    {"studentName": {"x": [1]}},
    {"studentName": ["Alice"]},
    {"enrollNo": 1},
])
def test_save_rejects_non_text_names(client, auth_headers, extra):
    record = {"studentId": "s1", "status": "Present", **extra}
    response = client.post(
        "/attendance/save",
        json={"className": "8A", "date": "2025-11-10", "records": [record]},
        headers=auth_headers("teacher"),
    )

    assert response.status_code == 400
    assert AttendanceSession.query.count() == 0


@pytest.mark.parametrize("date", [False, 0, 20251110, ["2025-11-10"]])
def test_save_rejects_non_date_values(client, auth_headers, date):
    response = _save(client, auth_headers("teacher"), date=date, s1="Present")

    assert response.status_code == 400
    assert AttendanceSession.query.count() == 0


def test_empty_date_means_today(client, auth_headers):
    response = _save(client, auth_headers("teacher"), date="", s1="Present")

    assert response.status_code == 201
    assert response.get_json()["attendance"]["date"] == normalize_day().isoformat()


def test_caller_is_resolved_once_per_request(app, auth_headers):
    with app.test_request_context("/classes/my-classes", headers=auth_headers("teacher")):
        verify_jwt_in_request()
        first = get_current_caller()

        assert get_current_caller() is first
        assert g.caller is first


def test_each_request_gets_its_own_caller(client, auth_headers):
    mine = client.get("/classes/my-classes", headers=auth_headers("teacher")).get_json()
    theirs = client.get("/classes/my-classes", headers=auth_headers("other_teacher")).get_json()

    assert [c["name"] for c in mine] == ["8A"]
    assert [c["name"] for c in theirs] == ["8B"]
