"""
HTTP layer: status codes, error bodies and JSON shapes.

Money is serialized as JSON numbers; failures answer {"error": ...}
with optional "details".
"""

from datetime import datetime

import pytest

from storepos.models import Sale, StockMovement


@pytest.fixture
def product(make_product):
    return make_product(name="Cola", sku="COLA-330", initial_stock=100, min_stock_level=10)


def _sale_payload(cashier, product, quantity=5, payment=100, unit_price=10.0):
    return {
        "cashier_id": cashier.id,
        "payment_method": "cash",
        "payment_received": payment,
        "items": [{"product_id": product.id, "quantity": quantity, "unit_price": unit_price}],
    }


class TestHealth:
    def test_health(self, client):
        res = client.get("/api/health")
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "ok"
        assert body["database"]["status"] == "healthy"
        assert body["timestamp"].endswith("Z")

    def test_cors_allows_configured_origin(self, client):
        res = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert res.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_cors_ignores_unknown_origin(self, client):
        res = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in res.headers


class TestSalesApi:
    def test_create_sale(self, client, cashier, product):
        res = client.post("/api/sales", json=_sale_payload(cashier, product))

        assert res.status_code == 201
        sale = res.get_json()["sale"]
        assert sale["total_amount"] == 50.0
        assert sale["change_given"] == 50.0
        assert sale["transaction_id"].startswith("TXN-")
        assert len(sale["items"]) == 1
        assert sale["items"][0]["total_price"] == 50.0

        stock = client.get(f"/api/inventory/{product.id}/stock").get_json()
        assert stock["current_stock"] == 95

    def test_get_and_list(self, client, cashier, product):
        created = client.post("/api/sales", json=_sale_payload(cashier, product)).get_json()["sale"]

        fetched = client.get(f"/api/sales/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.get_json()["sale"]["transaction_id"] == created["transaction_id"]

        listing = client.get("/api/sales").get_json()
        assert listing["count"] == 1
        assert "items" not in listing["items"][0]

    def test_insufficient_stock_is_409(self, client, cashier, product, db_session):
        res = client.post("/api/sales", json=_sale_payload(cashier, product, quantity=101, payment=5000))

        assert res.status_code == 409
        body = res.get_json()
        assert "Insufficient stock" in body["error"]
        assert body["details"]["available"] == 100
        assert db_session.query(Sale).count() == 0

    def test_unknown_product_is_404(self, client, cashier, product):
        payload = _sale_payload(cashier, product)
        payload["items"][0]["product_id"] = 9999

        res = client.post("/api/sales", json=payload)

        assert res.status_code == 404
        assert res.get_json()["error"] == "Product with id 9999 not found"

    def test_inactive_product_is_409(self, client, cashier, product):
        client.delete(f"/api/products/{product.id}")

        res = client.post("/api/sales", json=_sale_payload(cashier, product))

        assert res.status_code == 409

    def test_underpayment_is_400(self, client, cashier, product):
        res = client.post("/api/sales", json=_sale_payload(cashier, product, payment=10))

        assert res.status_code == 400
        assert "less than total" in res.get_json()["error"]

    def test_empty_items_is_400(self, client, cashier):
        res = client.post("/api/sales", json={
            "cashier_id": cashier.id, "payment_method": "cash",
            "payment_received": 10, "items": [],
        })

        assert res.status_code == 400
        assert res.get_json()["error"] == "Sale must contain at least one item"

    def test_non_json_body_is_400(self, client):
        res = client.post("/api/sales", data="not json", content_type="text/plain")

        assert res.status_code == 400

    def test_list_filtered_by_date_range(self, client, cashier, product, db_session):
        created = client.post("/api/sales", json=_sale_payload(cashier, product)).get_json()["sale"]
        sale = db_session.get(Sale, created["id"])
        sale.created_at = datetime(2026, 1, 15, 10, 0)
        db_session.commit()

        same_day = client.get("/api/sales?start_date=2026-01-15&end_date=2026-01-16").get_json()
        next_day = client.get("/api/sales?start_date=2026-01-16").get_json()
        with_offset = client.get("/api/sales?start_date=2026-01-15T09:00:00Z&end_date=2026-01-15T10:00:01%2B00:00").get_json()

        assert [s["id"] for s in same_day["items"]] == [created["id"]]
        assert next_day["count"] == 0
        assert with_offset["count"] == 1

    def test_bad_date_is_400(self, client):
        res = client.get("/api/sales?start_date=last-tuesday")

        assert res.status_code == 400
        assert "ISO-8601" in res.get_json()["error"]

    def test_inverted_date_range_is_400(self, client):
        res = client.get("/api/sales?start_date=2026-02-01&end_date=2026-01-01")

        assert res.status_code == 400

    def test_sub_cent_price_is_400(self, client, cashier, product):
        res = client.post("/api/sales", json=_sale_payload(cashier, product, unit_price=10.005))

        assert res.status_code == 400
        assert "at most 2 decimal places" in res.get_json()["error"]

    def test_oversized_quantity_is_400(self, client, cashier, product):
        res = client.post("/api/sales", json=_sale_payload(cashier, product, quantity=2 ** 63))

        assert res.status_code == 400

    def test_missing_sale_is_404(self, client):
        assert client.get("/api/sales/12345").status_code == 404


class TestInventoryApi:
    def test_post_movement(self, client, product, stock_manager):
        res = client.post("/api/inventory/movements", json={
            "product_id": product.id,
            "movement_type": "adjustment",
            "quantity": 75,
            "created_by": stock_manager.id,
            "notes": "Cycle count",
        })

        assert res.status_code == 201
        body = res.get_json()
        assert body["current_stock"] == 75
        assert body["movement"]["quantity"] == -25
        assert body["movement"]["balance_after"] == 75

    def test_out_beyond_stock_is_409(self, client, product, stock_manager, db_session):
        before = db_session.query(StockMovement).count()

        res = client.post("/api/inventory/movements", json={
            "product_id": product.id, "movement_type": "out",
            "quantity": 500, "created_by": stock_manager.id,
        })

        assert res.status_code == 409
        assert db_session.query(StockMovement).count() == before

    def test_invalid_type_is_400(self, client, product, stock_manager):
        res = client.post("/api/inventory/movements", json={
            "product_id": product.id, "movement_type": "shrink",
            "quantity": 1, "created_by": stock_manager.id,
        })

        assert res.status_code == 400

    def test_list_movements(self, client, product, stock_manager):
        client.post("/api/inventory/movements", json={
            "product_id": product.id, "movement_type": "in",
            "quantity": 5, "created_by": stock_manager.id,
        })

        body = client.get(f"/api/inventory/movements?product_id={product.id}").get_json()

        assert body["count"] == 2
        assert body["items"][0]["quantity"] == 5
        assert body["items"][1]["notes"] == "Initial stock"

    def test_oversized_quantity_is_400(self, client, product, stock_manager):
        res = client.post("/api/inventory/movements", json={
            "product_id": product.id, "movement_type": "in",
            "quantity": 2 ** 63, "created_by": stock_manager.id,
        })

        assert res.status_code == 400
        assert "quantity must be between" in res.get_json()["error"]
        assert client.get(f"/api/inventory/{product.id}/stock").get_json()["current_stock"] == 100

    def test_oversized_ids_in_url_and_query(self, client):
        assert client.get("/api/inventory/9223372036854775808/stock").status_code == 404
        assert client.get("/api/inventory/movements?product_id=9223372036854775808").status_code == 400
        assert client.get("/api/products?page=9223372036854775808").status_code == 400

    def test_stock_of_missing_product_is_404(self, client):
        assert client.get("/api/inventory/999/stock").status_code == 404


class TestProductsApi:
    def test_create_product(self, client, category, stock_manager):
        res = client.post("/api/products", json={
            "name": "Sparkling Water",
            "sku": "WTR-500",
            "barcode": "7613035974685",
            "category_id": category.id,
            "selling_price": 1.49,
            "cost_price": 0.6,
            "initial_stock": 24,
            "min_stock_level": 6,
            "created_by": stock_manager.id,
        })

        assert res.status_code == 201
        product = res.get_json()["product"]
        assert product["selling_price"] == 1.49
        assert product["cost_price"] == 0.6
        assert product["current_stock"] == 24

    def test_duplicate_sku_is_409(self, client, product, category, stock_manager):
        res = client.post("/api/products", json={
            "name": "Another Cola", "sku": "COLA-330", "category_id": category.id,
            "selling_price": 2, "cost_price": 1, "initial_stock": 0,
            "created_by": stock_manager.id,
        })

        assert res.status_code == 409

    def test_missing_category_is_404(self, client, stock_manager):
        res = client.post("/api/products", json={
            "name": "Orphan", "sku": "ORP-1", "category_id": 999,
            "selling_price": 2, "cost_price": 1, "initial_stock": 0,
            "created_by": stock_manager.id,
        })

        assert res.status_code == 404

    def test_update_rejects_stock_field(self, client, product):
        res = client.put(f"/api/products/{product.id}", json={"current_stock": 1})

        assert res.status_code == 400
        assert res.get_json()["error"] == "Field not allowed: current_stock"

    def test_update(self, client, product):
        res = client.put(f"/api/products/{product.id}", json={"selling_price": "2.50"})

        assert res.status_code == 200
        assert res.get_json()["product"]["selling_price"] == 2.5

    def test_search(self, client, product):
        res = client.get("/api/products/search?query=cola-3")

        assert res.status_code == 200
        assert [p["id"] for p in res.get_json()["items"]] == [product.id]

    def test_search_bad_limit(self, client):
        assert client.get("/api/products/search?limit=500").status_code == 400

    def test_low_stock(self, client, product, stock_manager):
        client.post("/api/inventory/movements", json={
            "product_id": product.id, "movement_type": "adjustment",
            "quantity": 4, "created_by": stock_manager.id,
        })

        body = client.get("/api/products/low-stock").get_json()

        assert [p["id"] for p in body["items"]] == [product.id]

    def test_delete_is_soft(self, client, product):
        res = client.delete(f"/api/products/{product.id}")

        assert res.status_code == 200
        assert res.get_json()["product"]["is_active"] is False
        assert client.get(f"/api/products/{product.id}").status_code == 200
        assert client.get("/api/products").get_json()["count"] == 0


class TestUsersAndCategoriesApi:
    def test_create_user(self, client):
        res = client.post("/api/users", json={
            "username": "till_1", "email": "till1@store.test", "password": "hunter22",
            "full_name": "Till One", "role": "cashier",
        })

        assert res.status_code == 201
        assert "password_hash" not in res.get_json()["user"]

    def test_duplicate_user_is_409(self, client, cashier):
        res = client.post("/api/users", json={
            "username": cashier.username, "email": "new@store.test", "password": "hunter22",
            "full_name": "Dup", "role": "cashier",
        })

        assert res.status_code == 409

    def test_create_category(self, client):
        res = client.post("/api/categories", json={"name": "Dairy"})

        assert res.status_code == 201
        assert client.get("/api/categories").get_json()["count"] == 1
