"""
Tests for table management and the table state machine.
"""

import pytest

from pos_api.models import Table
from pos_api.services.domain import TableService
from pos_shared.utils.exceptions import TableNotFoundError
from pos_shared.utils.schemas import TableCreateRequest, TableUpdateRequest


class TestTableService:
    def test_create_defaults(self, db_session, seed_outlet):
        table = TableService(db_session).create(seed_outlet.id, TableCreateRequest(name="  T9 "))

        assert table.name == "T9"
        assert table.status == "EMPTY"
        assert table.capacity == 4

    def test_list_filters_by_status(self, db_session, seed_outlet, seed_table):
        service = TableService(db_session)
        service.create(seed_outlet.id, TableCreateRequest(name="T2", status="OCCUPIED"))

        occupied = service.list_tables(seed_outlet.id, "OCCUPIED")

        assert [t.name for t in occupied] == ["T2"]
        assert len(service.list_tables(seed_outlet.id)) == 2

    def test_manual_status_override(self, db_session, seed_table):
        table = TableService(db_session).update(seed_table.id, TableUpdateRequest(status="BILLED"))

        assert table.status == "BILLED"
        assert TableService.is_available(table)

    def test_occupied_is_not_available(self, db_session, seed_table):
        seed_table.status = "OCCUPIED"

        assert not TableService.is_available(seed_table)

    def test_get_outside_outlet(self, db_session, seed_table, seed_other_outlet):
        with pytest.raises(TableNotFoundError):
            TableService(db_session).get(seed_table.id, seed_other_outlet.id)

    def test_occupy_is_idempotent(self, db_session, seed_table):
        service = TableService(db_session)

        service.occupy(seed_table)
        service.occupy(seed_table)
        db_session.commit()

        assert db_session.get(Table, seed_table.id).status == "OCCUPIED"


class TestTableEndpoints:
    def test_create_table(self, client, cashier_headers):
        response = client.post("/api/tables", json={"name": "Patio 1", "capacity": 6}, headers=cashier_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Patio 1"
        assert data["capacity"] == 6
        assert data["status"] == "EMPTY"

    def test_staff_cannot_create_table(self, client, staff_headers):
        response = client.post("/api/tables", json={"name": "Patio 1"}, headers=staff_headers)

        assert response.status_code == 403

    def test_list_with_status_filter(self, client, staff_headers, seed_table):
        response = client.get("/api/tables?status=EMPTY", headers=staff_headers)

        assert response.status_code == 200
        assert [t["name"] for t in response.json()] == ["T1"]

        response = client.get("/api/tables?status=OCCUPIED", headers=staff_headers)
        assert response.json() == []

    def test_update_table(self, client, cashier_headers, seed_table):
        response = client.patch(
            f"/api/tables/{seed_table.id}",
            json={"status": "OCCUPIED", "capacity": 2},
            headers=cashier_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "OCCUPIED"
        assert response.json()["capacity"] == 2
