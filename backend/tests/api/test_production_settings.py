"""
API tests for production settings.
"""
from decimal import Decimal

import pytest

from tests.factories import (
    create_test_machine,
    create_test_production_order,
    create_test_roll,
    create_test_user,
)


class TestProductionSettings:

    @pytest.mark.api
    def test_defaults(self, client):
        response = client.get("/api/production-settings")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["overrun_tolerance_percent"]) == Decimal("3")
        assert data["allow_last_roll_overrun"] is True
        assert Decimal(data["roll_waste_tolerance_percent"]) == Decimal("10")
        assert data["qr_prefix"] == "ROLL"

    @pytest.mark.api
    def test_update(self, client):
        response = client.patch(
            "/api/production-settings",
            json={"overrun_tolerance_percent": 5, "allow_last_roll_overrun": False},
        )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["overrun_tolerance_percent"]) == Decimal("5")
        assert data["allow_last_roll_overrun"] is False
        assert data["qr_prefix"] == "ROLL"

    @pytest.mark.api
    @pytest.mark.parametrize("body", [
        {"overrun_tolerance_percent": 11},
        {"overrun_tolerance_percent": -1},
        {"roll_waste_tolerance_percent": 51},
    ])
    def test_out_of_range(self, client, body):
        response = client.patch("/api/production-settings", json=body)
        assert response.status_code == 400

    @pytest.mark.api
    def test_last_roll_overrun_can_be_disabled(self, client, db):
        po = create_test_production_order(db, quantity_kg=1000, final_quantity_kg=1030, status="in_progress")
        extruder = create_test_machine(db, "extruder")
        user = create_test_user(db)
        create_test_roll(db, po, weight_kg=1020, film_machine=extruder, created_by=user)
        db.commit()

        client.patch("/api/production-settings", json={"allow_last_roll_overrun": False})
        response = client.post("/api/rolls", json={
            "production_order_id": po.id,
            "weight_kg": 15,
            "film_machine_id": extruder.id,
            "created_by": user.id,
            "is_last_roll": True,
        })

        assert response.status_code == 400
        assert response.json()["error"] == "REMAINING_QUANTITY_EXCEEDED"

    @pytest.mark.api
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
