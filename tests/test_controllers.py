from __future__ import annotations

from datetime import datetime

import pytest

from src.field_service.field_service.core.enums import AttendanceStatus, Role

PACKAGE = "src.field_service.field_service"


@pytest.fixture
def clock(monkeypatch):
    """Pin the services' notion of "now"; returns a setter for later moves."""
    current = {"now": datetime(2024, 6, 1, 9, 0)}

    def now_local():
        return current["now"]

    for module in ("attendance.service", "attendance.report_service", "activities.service"):
        monkeypatch.setattr(f"{PACKAGE}.{module}.now_local", now_local)

    def move_to(value: datetime) -> None:
        current["now"] = value

    return move_to


def test_routes_require_login(client):
    assert client.get("/api/attendance/status").status_code == 401
    assert client.get("/api/activities").status_code == 401
    assert client.get("/api/admin/attendance").status_code == 401


def test_service_person_cannot_open_admin_routes(client, login_as):
    login_as(7, Role.SERVICE_PERSON)

    res = client.get("/api/admin/attendance")

    assert res.status_code == 403
    assert res.get_json()["success"] is False


def test_check_in_then_status(client, login_as, clock):
    login_as(7, Role.SERVICE_PERSON)

    res = client.post("/api/attendance/check-in", json={"latitude": 12.9, "longitude": 77.6, "notes": "start"})

    assert res.status_code == 201
    body = res.get_json()
    assert body["success"] is True
    assert body["data"]["status"] == "CHECKED_IN"
    assert body["data"]["check_in_location"]["address"] == "221B Baker Street"

    status = client.get("/api/attendance/status").get_json()["data"]
    assert status["is_checked_in"] is True


def test_check_in_without_coordinates_is_bad_request(client, login_as, clock):
    login_as(7, Role.SERVICE_PERSON)

    res = client.post("/api/attendance/check-in", json={"latitude": "north"})

    assert res.status_code == 400


def test_second_check_in_is_rejected(client, login_as, clock):
    login_as(7, Role.SERVICE_PERSON)
    client.post("/api/attendance/check-in", json={"latitude": 1.0, "longitude": 2.0})

    res = client.post("/api/attendance/check-in", json={"latitude": 1.0, "longitude": 2.0})

    assert res.status_code == 400


def test_early_checkout_asks_for_confirmation(client, login_as, clock):
    login_as(7, Role.SERVICE_PERSON)
    attendance_id = client.post("/api/attendance/check-in", json={"latitude": 1.0, "longitude": 2.0}).get_json()["data"]["id"]
    clock(datetime(2024, 6, 1, 17, 0))

    res = client.post("/api/attendance/check-out", json={"attendance_id": attendance_id})

    assert res.status_code == 400
    body = res.get_json()
    assert body["requires_confirmation"] is True
    assert body["scheduled_time"] == "2024-06-01T19:00:00"

    confirmed = client.post(
        "/api/attendance/check-out",
        json={"attendance_id": attendance_id, "confirm_early_checkout": True},
    )
    assert confirmed.status_code == 200
    assert confirmed.get_json()["data"]["status"] == "EARLY_CHECKOUT"
    assert confirmed.get_json()["data"]["total_hours"] == 8


def test_checkout_unknown_session_is_not_found(client, login_as, clock):
    login_as(7, Role.SERVICE_PERSON)

    res = client.post("/api/attendance/check-out", json={"attendance_id": 404, "confirm_early_checkout": True})

    assert res.status_code == 404


def test_history_is_paginated(client, login_as, attendance_repo):
    for day in range(1, 4):
        attendance_repo.seed(7, datetime(2024, 6, day, 9), datetime(2024, 6, day, 19), total_hours=10, status=AttendanceStatus.CHECKED_OUT)
    login_as(7, Role.SERVICE_PERSON)

    body = client.get("/api/attendance/history?page=1&limit=2").get_json()

    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}


def test_bad_page_argument(client, login_as):
    login_as(7, Role.SERVICE_PERSON)

    assert client.get("/api/attendance/history?page=zero").status_code == 400


def test_activity_needs_check_in(client, login_as, clock):
    login_as(7, Role.SERVICE_PERSON)

    res = client.post(
        "/api/activities",
        json={"activity_type": "TICKET_WORK", "title": "Fix AC", "start_time": "2024-06-01T09:30:00"},
    )

    assert res.status_code == 400
    assert "Check-in required" in res.get_json()["message"]


def test_activity_logged_after_check_in(client, login_as, clock):
    login_as(7, Role.SERVICE_PERSON)
    client.post("/api/attendance/check-in", json={"latitude": 1.0, "longitude": 2.0})

    res = client.post(
        "/api/activities",
        json={
            "activity_type": "TICKET_WORK",
            "title": "Fix AC",
            "start_time": "2024-06-01T09:30:00",
            "end_time": "2024-06-01T10:00:00",
        },
    )

    assert res.status_code == 201
    assert res.get_json()["data"]["duration"] == 30
    listed = client.get("/api/activities?activity_type=TICKET_WORK").get_json()
    assert [a["title"] for a in listed["data"]] == ["Fix AC"]


def test_admin_list_includes_absentees(client, login_as, attendance_repo, clock):
    attendance_repo.seed(7, datetime(2024, 6, 1, 8), datetime(2024, 6, 1, 12), total_hours=4, status=AttendanceStatus.CHECKED_OUT)
    attendance_repo.seed(7, datetime(2024, 6, 1, 13), datetime(2024, 6, 1, 18), total_hours=5, status=AttendanceStatus.CHECKED_OUT)
    clock(datetime(2024, 6, 1, 20, 0))
    login_as(1, Role.ADMIN)

    body = client.get("/api/admin/attendance?start_date=2024-06-01&end_date=2024-06-01").get_json()

    rows = body["data"]["attendance"]
    assert [r["id"] for r in rows] == [1, "absent-9-20240601", "absent-11-20240601"]
    assert rows[0]["total_hours"] == 9
    assert body["data"]["pagination"]["total"] == 3


def test_zone_user_sees_only_own_zone(client, login_as, attendance_repo, clock):
    attendance_repo.seed(11, datetime(2024, 6, 1, 9))
    clock(datetime(2024, 6, 1, 20, 0))
    login_as(2, Role.ZONE_USER, zone_id=1)

    body = client.get("/api/admin/attendance?start_date=2024-06-01&zone_id=2").get_json()

    assert {r["user_id"] for r in body["data"]["attendance"]} == {7, 9}
    assert client.get("/api/admin/attendance/1").status_code == 403


def test_detail_of_absent_placeholder(client, login_as):
    login_as(1, Role.ADMIN)

    body = client.get("/api/admin/attendance/absent-9-20240601").get_json()

    assert body["data"]["status"] == "ABSENT"
    assert body["data"]["user"]["name"] == "Ravi"
    assert body["data"]["gaps"] == []


def test_detail_with_malformed_id(client, login_as):
    login_as(1, Role.ADMIN)

    assert client.get("/api/admin/attendance/absent-9").status_code == 400


def test_only_admin_can_edit_records(client, login_as, attendance_repo):
    sid = attendance_repo.seed(7, datetime(2024, 6, 1, 9))
    login_as(2, Role.ZONE_USER, zone_id=1)

    assert client.put(f"/api/admin/attendance/{sid}", json={"status": "CHECKED_OUT"}).status_code == 403

    login_as(1, Role.ADMIN)
    res = client.put(
        f"/api/admin/attendance/{sid}",
        json={"check_out_at": "2024-06-01T18:00:00", "check_in_at": "2024-06-01T09:00:00", "admin_notes": "fixed"},
    )
    assert res.status_code == 200
    assert res.get_json()["data"]["total_hours"] == 9
    assert res.get_json()["data"]["notes"] == "Admin: fixed"


def test_admin_adds_activity(client, login_as, attendance_repo):
    sid = attendance_repo.seed(9, datetime(2024, 6, 1, 9))
    login_as(1, Role.ADMIN)

    res = client.post(
        f"/api/admin/attendance/{sid}/activities",
        json={"activity_type": "TRAVEL", "title": "Drive to site", "start_time": "2024-06-01T09:15:00"},
    )

    assert res.status_code == 201
    assert res.get_json()["data"]["user_id"] == 9
    assert res.get_json()["data"]["metadata"]["added_by_admin"] is True


def test_live_tracking_and_zone_lookups(client, login_as, attendance_repo, clock):
    attendance_repo.seed(7, datetime(2024, 6, 1, 8, 30))
    attendance_repo.seed(11, datetime(2024, 6, 1, 8, 45))
    login_as(2, Role.ZONE_USER, zone_id=1)

    live = client.get("/api/admin/attendance/live").get_json()["data"]
    assert live["total_active"] == 1
    assert live["live_tracking"][0]["user"]["name"] == "Asha"

    zones = client.get("/api/admin/service-zones").get_json()["data"]
    assert [z["name"] for z in zones] == ["North"]

    persons = client.get("/api/admin/service-persons").get_json()["data"]
    assert [p["name"] for p in persons] == ["Asha", "Ravi"]


def test_unknown_session_role_is_forbidden(client):
    with client.session_transaction() as sess:
        sess["user_id"] = 7
        sess["role"] = "SUPERVISOR"

    for path in ("/api/attendance/status", "/api/admin/attendance"):
        res = client.get(path)
        assert res.status_code == 403
        assert res.get_json()["success"] is False


def test_admin_edit_with_utc_timestamp(client, login_as, attendance_repo):
    sid = attendance_repo.seed(7, datetime(2024, 6, 1, 9))
    login_as(1, Role.ADMIN)

    res = client.put(
        f"/api/admin/attendance/{sid}",
        json={"check_in_at": "2024-06-01T12:00:00Z", "check_out_at": "2024-06-03T12:00:00"},
    )

    assert res.status_code == 200
    assert attendance_repo.rows[sid].check_in_at.tzinfo is None
