"""
HTTP tests for the orders, kitchen and tables routers.
"""

from tests.conftest import make_order


def submit(client, table_number, *product_ids):
    return client.post(
        "/api/orders/table",
        json={
            "order_data": {
                "table_number": table_number,
                "items": [{"product_id": pid, "quantity": 1} for pid in product_ids],
            }
        },
    )


class TestOrderRoutes:
    def test_submit_table_order(self, client, seed_tables, seed_catalog):
        response = submit(client, "5", seed_catalog["burger"].id, seed_catalog["cola"].id)

        assert response.status_code == 201
        data = response.json()
        assert data["kitchen_type"] == "mixed"
        assert data["tax_deferred"] is True
        assert data["total_cents"] == 1300

    def test_submit_with_empty_table_number(self, client, seed_catalog):
        response = submit(client, "", seed_catalog["burger"].id)

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_submit_pickup_and_complete(self, client, seed_catalog):
        created = client.post(
            "/api/orders/pickup", json={"items": [{"product_id": seed_catalog["burger"].id}]}
        )
        assert created.status_code == 201
        order_id = created.json()["order_id"]

        response = client.post(f"/api/orders/{order_id}/complete", json={"payment_method": "card"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["payment_method"] == "card"
        assert data["total_cents"] == 1140
        assert data["receipt_url"] == f"/api/orders/{order_id}/receipt"
        assert data["tax_summary"]["tax_cents"] == 140
        assert data["tax_summary"]["tax_deferred"] is False

    def test_complete_without_body_uses_cash(self, client, db_session):
        order = make_order(db_session, table_number=None, order_type="pickup")

        response = client.post(f"/api/orders/{order.id}/complete")

        assert response.status_code == 200
        assert response.json()["payment_method"] == "cash"

    def test_complete_table_order_rejected(self, client, db_session):
        order = make_order(db_session, status="pending", food_ready=True)

        response = client.post(f"/api/orders/{order.id}/complete")

        assert response.status_code == 400
        assert "Close Table" in response.json()["detail"]

    def test_confirm_payment(self, client, db_session):
        order = make_order(db_session, status="pending", food_ready=True)

        first = client.post(f"/api/orders/{order.id}/confirm-payment")
        second = client.post(f"/api/orders/{order.id}/confirm-payment")

        assert first.json()["changed"] is True
        assert second.status_code == 200
        assert second.json()["changed"] is False

    def test_unknown_order_is_404(self, client, db_session):
        response = client.post("/api/orders/424242/complete")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestKitchenRoutes:
    def test_queue_and_summary(self, client, db_session):
        make_order(db_session, kitchen_type="food")
        make_order(
            db_session,
            kitchen_type="mixed",
            items=[("Burger", "food", 1, 1000), ("Cola", "beverage", 1, 300)],
            food_ready=True,
        )

        queue = client.get("/api/kitchen/orders", params={"readiness": "ready"})
        summary = client.get("/api/kitchen/summary")

        assert queue.status_code == 200
        assert len(queue.json()) == 1
        assert queue.json()[0]["readiness"]["waiting_for"] == ["beverage"]
        assert summary.json()["total"] == 2

    def test_queue_rejects_unknown_filter(self, client):
        response = client.get("/api/kitchen/orders", params={"kitchen_type": "bar"})

        assert response.status_code == 422

    def test_mark_ready_defaults_to_food(self, client, db_session):
        order = make_order(db_session)

        response = client.post(f"/api/kitchen/orders/{order.id}/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "pending"

    def test_mark_ready_invalid_kitchen(self, client, db_session):
        order = make_order(db_session)

        response = client.post(f"/api/kitchen/orders/{order.id}/ready", json={"kitchen": "bar"})

        assert response.status_code == 400


class TestTableRoutes:
    def test_list_and_update_tables(self, client, seed_tables):
        response = client.patch("/api/tables/7/status", json={"status": "maintenance"})
        assert response.status_code == 200
        assert response.json()["status"] == "maintenance"

        available = client.get("/api/tables", params={"status": "available"})
        assert sorted(t["table_number"] for t in available.json()) == ["12", "5"]

    def test_update_unknown_table(self, client, seed_tables):
        response = client.patch("/api/tables/99/status", json={"status": "available"})

        assert response.status_code == 404

    def test_close_with_processing_orders_asks_for_confirmation(self, client, db_session, seed_tables):
        order = make_order(db_session)

        response = client.post("/api/tables/5/close", json={})

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "confirmation_required"
        assert data["order_ids"] == [order.id]

    def test_close_blocked_by_half_ready_mixed_order(self, client, db_session, seed_tables):
        make_order(db_session, status="pending", food_ready=True)
        blocked = make_order(
            db_session,
            kitchen_type="mixed",
            items=[("Burger", "food", 1, 1000), ("Cola", "beverage", 1, 300)],
            food_ready=True,
        )

        response = client.post("/api/tables/5/close", json={"force_close": True})

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "closure_blocked"
        assert data["blocking_orders"] == [
            {"order_id": blocked.id, "pending_kitchens": ["beverage"]}
        ]

    def test_close_empty_table_is_404(self, client, seed_tables):
        response = client.post("/api/tables/5/close")

        assert response.status_code == 404


class TestDiningFlow:
    def test_order_cook_close(self, client, db_session, seed_tables, seed_catalog, redis_client):
        burger = submit(client, "5", seed_catalog["burger"].id).json()
        cola = submit(client, "5", seed_catalog["cola"].id).json()
        assert cola["session_id"] == burger["session_id"]

        asked = client.post("/api/tables/5/close", json={"payment_method": "card"})
        assert asked.status_code == 409

        client.post(f"/api/kitchen/orders/{burger['order_id']}/ready", json={"kitchen": "food"})
        client.post(f"/api/kitchen/orders/{cola['order_id']}/ready", json={"kitchen": "beverage"})

        open_orders = client.get("/api/tables/5/orders").json()
        assert open_orders["order_count"] == 2
        assert open_orders["total_cents"] == 1300

        closed = client.post("/api/tables/5/close", json={"payment_method": "card"})
        assert closed.status_code == 200
        invoice = closed.json()
        assert invoice["subtotal_cents"] == 1300
        assert invoice["tax_cents"] == 182
        assert invoice["total_cents"] == 1482
        assert sorted(invoice["child_order_ids"]) == sorted(
            [burger["order_id"], cola["order_id"]]
        )

        assert client.get("/api/tables/5/orders").json()["orders"] == []
        tables = {t["table_number"]: t["status"] for t in client.get("/api/tables").json()}
        assert tables["5"] == "available"
        channels = [c.args[0] for c in redis_client.publish.call_args_list]
        assert channels[-2:] == ["staff:orders", "table:5"]
