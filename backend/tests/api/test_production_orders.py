"""
API tests for production orders.
"""
from decimal import Decimal

import pytest

from app.api.v1.endpoints import production_orders as production_orders_api
from app.core.settings import settings
from app.models import ProductionOrder
from tests.factories import (
    create_test_customer_product,
    create_test_order,
    create_test_production_order,
    create_test_roll,
)


class TestPreviewQuantities:
    """Tests for POST /api/production-orders/preview-quantities"""

    @pytest.mark.api
    def test_preview(self, client, db):
        product = create_test_customer_product(db, punching="Banana")
        db.commit()

        response = client.post(
            "/api/production-orders/preview-quantities",
            json={"customer_product_id": product.id, "quantity_kg": 500},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["punching"] == "Banana"
        assert Decimal(data["overrun_percentage"]) == Decimal("10")
        assert Decimal(data["overrun_quantity_kg"]) == Decimal("50")
        assert Decimal(data["final_quantity_kg"]) == Decimal("550")

    @pytest.mark.api
    def test_unmapped_punching_uses_default(self, client, db):
        product = create_test_customer_product(db, punching="Zipper")
        db.commit()

        response = client.post(
            "/api/production-orders/preview-quantities",
            json={"customer_product_id": product.id, "quantity_kg": 100},
        )
        assert response.status_code == 200
        assert Decimal(response.json()["overrun_percentage"]) == Decimal("5")

    @pytest.mark.api
    def test_unmapped_punching_in_strict_mode(self, client, db, monkeypatch):
        monkeypatch.setattr(settings, "STRICT_PUNCHING_CODES", True)
        product = create_test_customer_product(db, punching="Zipper")
        db.commit()

        response = client.post(
            "/api/production-orders/preview-quantities",
            json={"customer_product_id": product.id, "quantity_kg": 100},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "UNKNOWN_PRODUCT_TYPE"


class TestCreateProductionOrder:
    """Tests for POST /api/production-orders"""

    @pytest.mark.api
    def test_add_to_order(self, client, db):
        order = create_test_order(db)
        product = create_test_customer_product(db, customer=order.customer, punching="T-Shirt\\Hook")
        db.commit()

        response = client.post("/api/production-orders", json={
            "order_id": order.id,
            "customer_product_id": product.id,
            "quantity_kg": 250,
            "final_quantity_kg": 1,
        })

        assert response.status_code == 201
        data = response.json()
        assert data["production_order_number"].startswith("PO-")
        assert Decimal(data["final_quantity_kg"]) == Decimal("300")
        assert data["status"] == "pending"

    @pytest.mark.api
    def test_closed_order_rejected(self, client, db):
        order = create_test_order(db, status="cancelled")
        product = create_test_customer_product(db, customer=order.customer)
        db.commit()

        response = client.post("/api/production-orders", json={
            "order_id": order.id, "customer_product_id": product.id, "quantity_kg": 100,
        })
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_TRANSITION"

    @pytest.mark.api
    def test_number_taken_concurrently(self, client, db, monkeypatch):
        existing = create_test_production_order(db)
        order = create_test_order(db)
        product = create_test_customer_product(db, customer=order.customer)
        db.commit()
        taken = existing.production_order_number
        monkeypatch.setattr(production_orders_api, "generate_production_order_number", lambda db: taken)

        response = client.post("/api/production-orders", json={
            "order_id": order.id, "customer_product_id": product.id, "quantity_kg": 100,
        })

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "CONCURRENCY_ERROR"
        assert data["details"]["production_order_number"] == taken
        assert db.query(ProductionOrder).count() == 1


class TestUpdateProductionOrder:
    """Tests for PATCH /api/production-orders/{id}"""

    @pytest.mark.api
    def test_quantity_change_recomputes_overrun(self, client, db):
        order = create_test_order(db)
        product = create_test_customer_product(db, customer=order.customer, punching="T-Shirt")
        po = create_test_production_order(db, order=order, customer_product=product, quantity_kg=1000)
        db.commit()

        response = client.patch(f"/api/production-orders/{po.id}", json={"quantity_kg": 2000})

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["quantity_kg"]) == Decimal("2000")
        assert Decimal(data["overrun_percentage"]) == Decimal("20")
        assert Decimal(data["final_quantity_kg"]) == Decimal("2400")
        assert Decimal(data["remaining_quantity_kg"]) == Decimal("2400")

    @pytest.mark.api
    def test_product_change_recomputes_overrun(self, client, db):
        order = create_test_order(db)
        non = create_test_customer_product(db, customer=order.customer, punching="NON")
        banana = create_test_customer_product(db, customer=order.customer, punching="Banana")
        po = create_test_production_order(db, order=order, customer_product=non, quantity_kg=1000)
        db.commit()

        response = client.patch(
            f"/api/production-orders/{po.id}",
            json={"customer_product_id": banana.id, "overrun_percentage": 0},
        )

        assert response.status_code == 200
        assert Decimal(response.json()["final_quantity_kg"]) == Decimal("1100")

    @pytest.mark.api
    def test_status_transitions(self, client, db):
        po = create_test_production_order(db, status="pending")
        db.commit()

        response = client.patch(f"/api/production-orders/{po.id}", json={"status": "completed"})
        assert response.status_code == 400
        assert response.json()["details"]["allowed_statuses"] == ["cancelled", "in_progress"]

        response = client.patch(f"/api/production-orders/{po.id}", json={"status": "in_progress"})
        assert response.status_code == 200

        response = client.patch(f"/api/production-orders/{po.id}", json={"status": "completed"})
        assert response.status_code == 200
        assert response.json()["completed_at"] is not None

    @pytest.mark.api
    def test_closed_production_order_keeps_quantities(self, client, db):
        po = create_test_production_order(db, status="completed", quantity_kg=1000)
        db.commit()

        response = client.patch(f"/api/production-orders/{po.id}", json={"quantity_kg": 10})
        assert response.status_code == 400

    @pytest.mark.api
    def test_unknown_production_order(self, client):
        response = client.patch("/api/production-orders/9999", json={"quantity_kg": 10})
        assert response.status_code == 404


class TestReadProductionOrders:

    @pytest.mark.api
    def test_detail_includes_remaining(self, client, db):
        po = create_test_production_order(db, quantity_kg=1000, final_quantity_kg=1030, status="in_progress")
        create_test_roll(db, po, weight_kg=400)
        create_test_roll(db, po, weight_kg=600)
        db.commit()

        response = client.get(f"/api/production-orders/{po.id}")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["remaining_quantity_kg"]) == Decimal("30")
        assert data["roll_count"] == 2

    @pytest.mark.api
    def test_list_by_order(self, client, db):
        order = create_test_order(db)
        create_test_production_order(db, order=order)
        create_test_production_order(db, order=order)
        create_test_production_order(db)
        db.commit()

        response = client.get("/api/production-orders", params={"order_id": order.id})
        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 2
