"""
Tests for the HTTP surface.

Collaborators are replaced through FastAPI dependency overrides, so no
request leaves the process.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from hours_proxy.api.dependencies import get_sheet_publisher, get_upstream_client
from hours_proxy.api.main import app
from hours_proxy.errors import TransportError, UpstreamError
from hours_proxy.sheets.client import GoogleSheetsClient, SheetError
from hours_proxy.sheets.publisher import SheetPublisher
from hours_proxy.upstream.client import UpstreamClient, UpstreamResponse


@pytest.fixture
def upstream():
    return AsyncMock(spec=UpstreamClient)


@pytest.fixture
def sheets_client():
    client = MagicMock(spec=GoogleSheetsClient)
    client.get_sheet_id.return_value = 7
    return client


@pytest.fixture
def client(upstream, sheets_client):
    app.dependency_overrides[get_upstream_client] = lambda: upstream
    app.dependency_overrides[get_sheet_publisher] = lambda: SheetPublisher(sheets_client)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "version": "0.1.0"}


def test_cors_allows_default_origin(client):
    response = client.options(
        "/all-clients",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )

    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


class TestLogin:
    def test_relays_upstream_response(self, client, upstream):
        upstream.login.return_value = UpstreamResponse(200, {"token": "abc"})

        response = client.post("/login", json={"email": "a@b.c", "password": "pw"})

        assert response.status_code == 200
        assert response.json() == {"token": "abc"}
        upstream.login.assert_awaited_once_with({"email": "a@b.c", "password": "pw"})

    def test_relays_upstream_error(self, client, upstream):
        upstream.login.side_effect = UpstreamError(401, {"message": "Invalid credentials"})

        response = client.post("/login", json={"email": "a@b.c", "password": "wrong"})

        assert response.status_code == 401
        assert response.json() == {"error": {"message": "Invalid credentials"}}

    def test_transport_error_is_500(self, client, upstream):
        upstream.login.side_effect = TransportError("Error connecting to the API.")

        response = client.post("/login", json={"email": "a@b.c"})

        assert response.status_code == 500
        assert response.json() == {"error": "Error connecting to the API."}

    def test_rejects_non_object_body(self, client, upstream):
        response = client.post("/login", json=["a@b.c"])

        assert response.status_code == 400
        assert "error" in response.json()
        upstream.login.assert_not_called()


class TestAllClients:
    def test_missing_credential_is_401_without_upstream_call(self, client, upstream):
        response = client.get("/all-clients")

        assert response.status_code == 401
        assert "error" in response.json()
        upstream.get_clients.assert_not_called()

    @pytest.mark.parametrize("header", ["", "Bearer", "Bearer two parts", "   "])
    def test_malformed_credential_is_401(self, client, upstream, header):
        response = client.get("/all-clients", headers={"Authorization": header})

        assert response.status_code == 401
        upstream.get_clients.assert_not_called()

    @pytest.mark.parametrize("header", ["Bearer tok-1", "tok-1", "bearer tok-1"])
    def test_forwards_token(self, client, upstream, header):
        upstream.get_clients.return_value = UpstreamResponse(200, [{"id": 1, "name": "Acme"}])

        response = client.get("/all-clients", headers={"Authorization": header})

        assert response.status_code == 200
        assert response.json() == [{"id": 1, "name": "Acme"}]
        upstream.get_clients.assert_awaited_once_with("tok-1")

    def test_relays_upstream_status(self, client, upstream):
        upstream.get_clients.side_effect = UpstreamError(403, "Forbidden")

        response = client.get("/all-clients", headers={"Authorization": "Bearer tok"})

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}


class TestTimeLogs:
    def test_requires_date_range(self, client, upstream):
        response = client.get(
            "/time-logs", params={"DateFrom": "2024-01-01"}, headers={"Authorization": "Bearer tok"}
        )

        assert response.status_code == 400
        assert "DateTo" in response.json()["error"]
        upstream.get_time_logs.assert_not_called()

    def test_requires_credential(self, client, upstream):
        response = client.get("/time-logs", params={"DateFrom": "2024-01-01", "DateTo": "2024-01-31"})

        assert response.status_code == 401
        upstream.get_time_logs.assert_not_called()

    def test_forwards_all_query_params(self, client, upstream):
        upstream.get_time_logs.return_value = UpstreamResponse(200, [{"id": 9}])

        response = client.get(
            "/time-logs",
            params={"DateFrom": "2024-01-01", "DateTo": "2024-01-31", "ClientId": "4"},
            headers={"Authorization": "Bearer tok"},
        )

        assert response.status_code == 200
        assert response.json() == [{"id": 9}]
        upstream.get_time_logs.assert_awaited_once_with(
            "tok", {"DateFrom": "2024-01-01", "DateTo": "2024-01-31", "ClientId": "4"}
        )

    def test_relays_upstream_status(self, client, upstream):
        upstream.get_time_logs.side_effect = UpstreamError(404, {"message": "No report"})

        response = client.get(
            "/time-logs",
            params={"DateFrom": "2024-01-01", "DateTo": "2024-01-31"},
            headers={"Authorization": "Bearer tok"},
        )

        assert response.status_code == 404
        assert response.json() == {"error": {"message": "No report"}}


class TestEditLog:
    def test_requires_credential(self, client, upstream):
        response = client.put("/edit-log", json={"id": 1})

        assert response.status_code == 401
        upstream.edit_log.assert_not_called()

    @pytest.mark.parametrize("body", [{}, {"note": "no id"}, [1, 2]])
    def test_requires_log_id(self, client, upstream, body):
        response = client.put("/edit-log", json=body, headers={"Authorization": "Bearer tok"})

        assert response.status_code == 400
        assert "error" in response.json()
        upstream.edit_log.assert_not_called()

    def test_relays_upstream_response(self, client, upstream):
        upstream.edit_log.return_value = UpstreamResponse(200, {"id": 1, "note": "fixed"})

        response = client.put("/edit-log", json={"id": 1, "note": "fixed"}, headers={"Authorization": "tok"})

        assert response.status_code == 200
        assert response.json() == {"id": 1, "note": "fixed"}
        upstream.edit_log.assert_awaited_once_with("tok", {"id": 1, "note": "fixed"})

    def test_relays_empty_response(self, client, upstream):
        upstream.edit_log.return_value = UpstreamResponse(204, None)

        response = client.put("/edit-log", json={"id": 1}, headers={"Authorization": "tok"})

        assert response.status_code == 204
        assert response.content == b""

    @pytest.mark.parametrize("log_id", [".", ".."])
    def test_rejects_dot_segment_ids(self, client, upstream, log_id):
        response = client.put("/edit-log", json={"id": log_id}, headers={"Authorization": "tok"})

        assert response.status_code == 400
        upstream.edit_log.assert_not_called()


class TestWriteToSheet:
    @pytest.fixture
    def payload(self, make_entry):
        return {
            "entries": [
                make_entry("2024-01-02", amount=10, labor=2, billable_hours=2),
                make_entry("2024-01-01", amount=5, labor=1, billable_hours=1),
            ],
            "dateRange": "Jan 1 - Jan 2, 2024",
            "grandTotals": {"billableAmount": 15, "laborHours": 3, "billableHours": 3},
        }

    def test_publishes_report(self, client, sheets_client, payload):
        response = client.post("/write-to-sheet", json=payload)

        assert response.status_code == 200
        assert response.json() == {
            "message": "Data written to sheet successfully",
            "sheet": "Detailed Report",
            "range": "'Detailed Report'!A5:J9",
            "rows": 5,
        }
        data = sheets_client.update_values.call_args.args[0]
        assert data[0]["values"] == [["Jan 1 - Jan 2, 2024"]]
        assert data[2]["values"][-1][0] == "TOTAL"
        assert data[2]["values"][-1][9] == 15.0

    def test_rejects_non_list_entries(self, client, sheets_client):
        response = client.post("/write-to-sheet", json={"entries": "nope", "dateRange": "Jan"})

        assert response.status_code == 400
        assert "error" in response.json()
        sheets_client.update_values.assert_not_called()

    def test_rejects_entries_without_dates(self, client, sheets_client):
        response = client.post("/write-to-sheet", json={"entries": [{"userName": "Ana"}], "dateRange": "Jan"})

        assert response.status_code == 400
        assert "Entry 0" in response.json()["error"]
        sheets_client.get_sheet_id.assert_not_called()

    def test_publish_failure_is_500(self, client, sheets_client, payload):
        sheets_client.clear_range.side_effect = SheetError("Failed to clear range: 503")

        response = client.post("/write-to-sheet", json=payload)

        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to clear sheet")

    def test_out_of_range_amount_is_written_as_zero(self, client, sheets_client, make_entry):
        payload = {"entries": [make_entry("2024-01-01", amount=1e30, labor=1)], "dateRange": "Jan 2024"}

        response = client.post("/write-to-sheet", json=payload)

        assert response.status_code == 200
        sheets_client.clear_range.assert_called_once()
        data = sheets_client.update_values.call_args.args[0]
        assert data[2]["values"][-1][7:] == [1.0, 0.0, 0.0]
