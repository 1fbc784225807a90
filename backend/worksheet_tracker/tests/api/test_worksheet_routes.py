"""
Tests for the worksheet HTTP endpoints.
"""

from collections.abc import Generator
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from worksheet_tracker import main as main_module
from worksheet_tracker.main import create_app

BASE = "/api/v1/worksheets"


@pytest.fixture
def client(test_settings) -> Generator[TestClient, None, None]:
    with TestClient(create_app(test_settings)) as client:
        yield client


@pytest.fixture
def create_payload(group_id):
    return {
        "work_date": "2024-01-15",
        "group_id": str(group_id),
        "shift_type": "NORMAL_8H",
        "standard_output_per_hour": 10,
        "members": [{"worker_id": str(uuid4())} for _ in range(3)],
    }


@pytest.fixture
def created(client, create_payload):
    response = client.post(f"{BASE}/", json=create_payload, headers={"X-User-Id": "lead-1"})
    assert response.status_code == 201
    return response.json()


def _hour_records(worksheet, hour_index):
    return [
        record
        for item in worksheet["items"]
        for record in item["records"]
        if record["hour_index"] == hour_index
    ]


class TestCreateWorksheetEndpoint:
    def test_create_returns_graph(self, created):
        assert created["status"] == "ACTIVE"
        assert created["total_workers"] == 3
        assert created["planned_output_per_hour"] == 30
        assert created["created_by"] == "lead-1"
        first = created["items"][0]["records"][0]
        assert first["start_time"] == "07:30:00"
        assert first["end_time"] == "08:30:00"
        assert first["expected_output_total"] == 10

    def test_duplicate_is_conflict(self, client, created, create_payload):
        response = client.post(f"{BASE}/", json=create_payload)

        assert response.status_code == 409
        assert response.json()["detail"]["type"] == "resource_conflict"

    def test_no_members_rejected(self, client, create_payload):
        create_payload["members"] = []

        response = client.post(f"{BASE}/", json=create_payload)

        assert response.status_code == 422

    def test_group_outside_scope(self, client, create_payload):
        response = client.post(
            f"{BASE}/", json=create_payload, headers={"X-Group-Scope": str(uuid4())}
        )

        assert response.status_code == 404


class TestReadEndpoints:
    def test_get_worksheet(self, client, created):
        response = client.get(f"{BASE}/{created['id']}")

        assert response.status_code == 200
        assert len(response.json()["items"]) == 3

    def test_get_missing_worksheet(self, client):
        assert client.get(f"{BASE}/{uuid4()}").status_code == 404

    def test_list_filters(self, client, created, group_id):
        response = client.get(f"{BASE}/", params={"group_id": str(group_id), "status": "ACTIVE"})

        body = response.json()
        assert body["total"] == 1
        assert body["worksheets"][0]["id"] == created["id"]

    def test_scope_header_hides_other_groups(self, client, created):
        response = client.get(
            f"{BASE}/{created['id']}", headers={"X-Group-Scope": str(uuid4())}
        )

        assert response.status_code == 404

    def test_malformed_scope_header(self, client, created):
        response = client.get(
            f"{BASE}/{created['id']}", headers={"X-Group-Scope": "not-a-uuid"}
        )

        assert response.status_code == 400

    def test_summary(self, client, created):
        response = client.get(f"{BASE}/{created['id']}/summary")

        body = response.json()
        assert response.status_code == 200
        assert body["expected_output"] == 210
        assert body["actual_output"] == 0
        assert body["planned_shift_output"] == 240


class TestBatchOutputEndpoint:
    """Test the atomic batch output endpoint."""

    def test_batch_records_output(self, client, created):
        records = _hour_records(created, 1)
        payload = {
            "worksheet_id": created["id"],
            "entries": [
                {"record_id": r["id"], "actual_output": 9, "note": "steady"} for r in records
            ],
        }

        response = client.post(f"{BASE}/records/batch-output", json=payload)

        body = response.json()
        assert response.status_code == 200
        assert body["updated_count"] == 3
        assert {r["status"] for r in body["records"]} == {"COMPLETED"}
        assert body["records"][0]["efficiency"] == 90.0

    def test_unknown_record_rejects_batch(self, client, created):
        record = _hour_records(created, 1)[0]
        payload = {
            "entries": [
                {"record_id": record["id"], "actual_output": 5},
                {"record_id": str(uuid4()), "actual_output": 5},
            ]
        }

        response = client.post(f"{BASE}/records/batch-output", json=payload)

        assert response.status_code == 404
        reloaded = client.get(f"{BASE}/{created['id']}").json()
        assert _hour_records(reloaded, 1)[0]["actual_output_total"] == 0

    def test_negative_output_rejected(self, client, created):
        record = _hour_records(created, 1)[0]
        payload = {"entries": [{"record_id": record["id"], "actual_output": -1}]}

        response = client.post(f"{BASE}/records/batch-output", json=payload)

        assert response.status_code == 422

    def test_completed_worksheet_is_conflict(self, client, created):
        assert client.post(f"{BASE}/{created['id']}/complete").status_code == 200
        record = _hour_records(created, 1)[0]
        payload = {"entries": [{"record_id": record["id"], "actual_output": 5}]}

        response = client.post(f"{BASE}/records/batch-output", json=payload)

        assert response.status_code == 409


class TestCauseEndpoints:
    def test_put_replaces_and_get_lists(self, client, created):
        record_id = _hour_records(created, 2)[0]["id"]
        url = f"{BASE}/records/{record_id}/causes"

        client.put(url, json={"causes": [{"cause_type": "MATERIALS", "delta": -3}]})
        response = client.put(url, json={"causes": [{"cause_type": "QUALITY", "delta": -1}]})

        assert response.status_code == 200
        listed = client.get(url).json()
        assert [c["cause_type"] for c in listed["causes"]] == ["QUALITY"]

    def test_unknown_cause_type_rejected(self, client, created):
        record_id = _hour_records(created, 2)[0]["id"]

        response = client.put(
            f"{BASE}/records/{record_id}/causes",
            json={"causes": [{"cause_type": "WEATHER", "delta": -3}]},
        )

        assert response.status_code == 422


class TestUpdateEndpoints:
    def test_bulk_update_by_group_and_date(self, client, created, group_id):
        response = client.patch(
            f"{BASE}/groups/{group_id}/bulk",
            json={"work_date": "2024-01-15", "shift_type": "OVERTIME_11H"},
        )

        assert response.status_code == 200
        reloaded = client.get(f"{BASE}/{created['id']}").json()
        assert reloaded["shift_type"] == "OVERTIME_11H"
        assert len(reloaded["items"][0]["records"]) == 11

    def test_bulk_update_missing_day(self, client, group_id):
        response = client.patch(
            f"{BASE}/groups/{group_id}/bulk",
            json={"work_date": "2030-01-01", "planned_output_per_hour": 5},
        )

        assert response.status_code == 404

    def test_worker_target(self, client, created):
        item_id = created["items"][0]["id"]

        response = client.patch(
            f"{BASE}/items/{item_id}/target", json={"target_output_per_hour": 12}
        )

        assert response.status_code == 200
        assert {r["expected_output_total"] for r in response.json()["records"]} == {12}

    def test_cancel_then_edit_is_conflict(self, client, created):
        assert client.post(f"{BASE}/{created['id']}/cancel").status_code == 200

        response = client.patch(
            f"{BASE}/{created['id']}", json={"planned_output_per_hour": 40}
        )

        assert response.status_code == 409


class TestOperationalEndpoints:
    def test_app_builds_with_metrics_enabled(self, test_settings):
        """Test every route, including /metrics, gets a unique operation id."""
        app = create_app(test_settings.model_copy(update={"ENABLE_METRICS": True}))

        paths = {route.path for route in app.routes}
        assert "/metrics" in paths
        assert "/api/v1/worksheets/records/batch-output" in app.openapi()["paths"]

    def test_module_level_app_is_served(self):
        assert isinstance(main_module.app, FastAPI)
        assert "/metrics" in {route.path for route in main_module.app.routes}

    def test_metrics_exposed(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "worksheet" in response.text

    def test_correlation_id_echoed(self, client):
        response = client.get(f"{BASE}/", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"
