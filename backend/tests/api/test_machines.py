"""
API tests for machines.
"""
import pytest

from tests.factories import create_test_machine


class TestMachines:

    @pytest.mark.api
    def test_register_machine(self, client):
        response = client.post("/api/machines", json={"id": "M010", "name": "Extruder 10", "type": "extruder"})

        assert response.status_code == 201
        assert response.json()["status"] == "active"

    @pytest.mark.api
    def test_duplicate_machine(self, client, db):
        create_test_machine(db, machine_id="M010")
        db.commit()

        response = client.post("/api/machines", json={"id": "M010", "name": "Again", "type": "cutter"})
        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    @pytest.mark.api
    @pytest.mark.parametrize("machine_id", ["X001", "M1", "M0001"])
    def test_machine_id_format(self, client, machine_id):
        response = client.post("/api/machines", json={"id": machine_id, "name": "Bad", "type": "printer"})
        assert response.status_code == 400

    @pytest.mark.api
    def test_status_change(self, client, db):
        machine = create_test_machine(db, "printer")
        db.commit()

        response = client.patch(f"/api/machines/{machine.id}/status", json={"status": "maintenance"})

        assert response.status_code == 200
        assert response.json() == {"id": machine.id, "previous_status": "active", "status": "maintenance"}

    @pytest.mark.api
    def test_invalid_status(self, client, db):
        machine = create_test_machine(db, "printer")
        db.commit()

        response = client.patch(f"/api/machines/{machine.id}/status", json={"status": "broken"})
        assert response.status_code == 400

    @pytest.mark.api
    def test_list_by_type(self, client, db):
        create_test_machine(db, "extruder")
        create_test_machine(db, "extruder", status="down")
        create_test_machine(db, "cutter")
        db.commit()

        response = client.get("/api/machines", params={"type": "extruder"})
        assert len(response.json()) == 2

        response = client.get("/api/machines", params={"type": "extruder", "status": "active"})
        assert len(response.json()) == 1
