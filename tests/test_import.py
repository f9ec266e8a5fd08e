import pytest

from conftest import ADMIN_AUTH, ALICE_AUTH, add_user, run
from ptoflow.core.errors import RecordValidationError
from ptoflow.db.schema import PTO_DAILY_SCHEDULES, TEAMS, USERS


def import_record(**fields):
    record = {
        "requester_email": "alice@example.com",
        "manager_email": "ada@example.com",
        "leave_type": "Vacation",
        "status": "approved",
        "date": "2024-07-01",
        "schedule_type": "FULL_DAY",
    }
    record.update(fields)
    return record


def test_validate_reports_each_bad_record(services):
    result = run(
        services.imports.validate_import_data(
            [
                import_record(),
                import_record(leave_type="sabbatical"),
                import_record(date="07/01/2024", requester_email="not-an-email"),
                import_record(manager_email=""),
            ]
        )
    )
    assert result["valid"] is False
    assert result["total_records"] == 4
    assert result["invalid_records"] == 3
    assert [e["record"] for e in result["errors"]] == [2, 3, 4]
    assert result["errors"][1]["errors"] == [
        "Invalid date format. Expected YYYY-MM-DD",
        "Invalid requester_email format",
    ]
    assert result["errors"][2]["errors"] == ["Missing manager_email"]
    assert result["valid_records"][0]["leave_type"] == "vacation"


def test_validate_empty_payload(services):
    result = run(services.imports.validate_import_data([]))
    assert result["valid"] is False
    assert result["errors"][0]["errors"] == ["No valid import data provided"]


def test_validate_resolves_identity(services):
    result = run(
        services.imports.validate_import_data(
            [import_record(), import_record(manager_email="ghost@example.com")], check_identity=True
        )
    )
    assert result["valid_records"][0]["requester_id"] == "alice-1"
    assert result["valid_records"][0]["manager_id"] == "admin-1"
    assert result["errors"][0]["errors"] == ["Manager not found with email: ghost@example.com"]


def test_import_writes_rows_in_batches(services):
    records = [import_record(date=f"2024-07-{day:02d}") for day in range(1, 13)]
    records[0]["schedule_type"] = "HALF_DAY"
    result = run(services.imports.import_daily_schedules(records))

    assert result["success"] is True
    assert result["data"]["imported_records"] == 12
    assert result["data"]["failed_records"] == 0
    rows = run(services.store.query(PTO_DAILY_SCHEDULES))
    assert len(rows) == 12
    assert all(r["imported"] for r in rows)
    first = next(r for r in rows if r["date"] == "2024-07-01")
    assert first["schedule_type"] == "HALF_DAY_MORNING"
    assert first["hours"] == 4
    assert first["requester_id"] == "alice-1"


def test_import_stops_on_invalid_data(services):
    result = run(services.imports.import_daily_schedules([import_record(status="maybe")]))
    assert result["success"] is False
    assert result["message"] == "Invalid import data: 1 records have errors"
    assert run(services.store.query(PTO_DAILY_SCHEDULES)) == []


def test_import_reports_row_failures(services):
    result = run(
        services.imports.import_daily_schedules(
            [import_record(), import_record(hours="eight")], skip_validation=True
        )
    )
    assert result["success"] is True
    assert result["data"]["imported_records"] == 1
    assert result["data"]["errors"][0]["record"] == 2


def test_export_and_restore(services):
    add_user(services, "u1", "Uma")
    run(services.store.create(TEAMS, {"team_id": "t1", "team_name": "Platform"}))
    snapshot = run(services.imports.export_data())
    assert set(snapshot) == {"pto_requests", "pto_daily_schedules", "teams", "users"}
    assert [t["team_id"] for t in snapshot["teams"]] == ["t1"]

    run(services.store.create(TEAMS, {"team_id": "t2", "team_name": "Extra"}))
    counts = run(services.imports.restore_data({"teams": snapshot["teams"]}))
    assert counts == {"teams": 1}
    assert [t["team_id"] for t in run(services.store.query(TEAMS))] == ["t1"]
    assert run(services.store.get_by_id(USERS, "u1"))["display_name"] == "Uma"


def test_restore_rejects_snapshot_with_any_bad_collection(services):
    add_user(services, "u1", "Uma")
    run(services.store.create(TEAMS, {"team_id": "t1", "team_name": "Platform"}))
    snapshot = {
        "teams": [{"team_id": "t9", "team_name": "Restored"}],
        "users": [{"user_id": "u9", "display_name": 3}],
    }
    with pytest.raises(RecordValidationError):
        run(services.imports.restore_data(snapshot))
    assert [t["team_id"] for t in run(services.store.query(TEAMS))] == ["t1"]
    assert [u["user_id"] for u in run(services.store.query(USERS))] == ["u1"]


def test_admin_endpoints(client):
    assert client.get("/api/v1/admin/export", headers=ALICE_AUTH).status_code == 403

    response = client.post(
        "/api/v1/admin/import/validate", json={"records": [import_record()]}, headers=ADMIN_AUTH
    )
    assert response.json()["data"]["valid"] is True

    response = client.post("/api/v1/admin/import", json={"records": [import_record()]}, headers=ADMIN_AUTH)
    assert response.json()["data"]["imported_records"] == 1

    response = client.get("/api/v1/admin/export", params={"collection": "pto_daily_schedules"}, headers=ADMIN_AUTH)
    assert list(response.json()["data"]) == ["pto_daily_schedules"]
    assert len(response.json()["data"]["pto_daily_schedules"]) == 1

    response = client.post("/api/v1/admin/restore", json={"snapshot": {"holidays": []}}, headers=ADMIN_AUTH)
    assert response.status_code == 400
    assert response.json()["code"] == "unknown_collection"
