"""
HTTP surface tests through Flask's test client.
"""
import logging

import pytest

from cashier.storage.sql import SqlCheckoutUnit


@pytest.fixture(params=["sql", "memory"])
def api(request):
    """Test client for either storage backend."""
    if request.param == "sql":
        return request.getfixturevalue("client")
    return request.getfixturevalue("memory_client")


def _create_product(api, **overrides):
    body = {"name": "Indomie", "price": 3500, "stock": 10}
    body.update(overrides)
    resp = api.post("/api/products", json=body)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


class TestSystem:
    def test_root(self, api):
        resp = api.get("/")
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Cashier API"}

    def test_health_sql(self, client):
        data = client.get("/health").get_json()
        assert data["status"] == "healthy"
        assert data["storage"] == "sql"
        assert data["checks"]["database"]["status"] == "healthy"

    def test_health_memory(self, memory_client):
        resp = memory_client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["storage"] == "memory"
        assert resp.get_json()["checks"] == {}

    def test_version(self, api):
        data = api.get("/version").get_json()
        assert data["api_version"] == "1.0.0"
        assert "python_version" in data


class TestProducts:
    def test_crud_roundtrip(self, api):
        created = _create_product(api)
        assert created["active"] is True
        assert created["category_id"] is None

        resp = api.get(f"/api/products/{created['id']}")
        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Indomie"

        resp = api.put(f"/api/products/{created['id']}", json={"price": 4000})
        assert resp.status_code == 200
        assert resp.get_json()["price"] == 4000
        assert resp.get_json()["stock"] == 10

        resp = api.delete(f"/api/products/{created['id']}")
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Data successfully deleted"}

        resp = api.get(f"/api/products/{created['id']}")
        assert resp.status_code == 404
        assert resp.get_json()["type"] == "not_found"

    def test_list_with_filters(self, api):
        _create_product(api, name="Indomie Goreng")
        _create_product(api, name="Teh Botol", active=False)

        names = [p["name"] for p in api.get("/api/products").get_json()]
        assert names == ["Indomie Goreng", "Teh Botol"]

        names = [p["name"] for p in api.get("/api/products?name=teh").get_json()]
        assert names == ["Teh Botol"]

        names = [p["name"] for p in api.get("/api/products?active=true").get_json()]
        assert names == ["Indomie Goreng"]

    def test_bad_active_filter(self, api):
        resp = api.get("/api/products?active=maybe")
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "active must be true or false", "type": "validation_error"}

    def test_create_validation_error(self, api):
        resp = api.post("/api/products", json={"name": "Indomie", "price": -1})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "price must be >= 0", "type": "validation_error"}

    def test_create_without_body(self, api):
        resp = api.post("/api/products", data="not json", content_type="text/plain")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing required fields: name, price"

    def test_update_unknown(self, api):
        resp = api.put("/api/products/999999", json={"stock": 1})
        assert resp.status_code == 404

    def test_product_in_unknown_category(self, api):
        resp = api.post("/api/products", json={"name": "X", "price": 1, "category_id": 999999})
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "category id 999999 not found"


class TestCategories:
    def test_crud_and_resolution(self, api):
        resp = api.post("/api/categories", json={"name": "Makanan", "description": "Food"})
        assert resp.status_code == 201
        cat = resp.get_json()

        product = _create_product(api, category_id=cat["id"])
        assert product["category"] == {"id": cat["id"], "name": "Makanan", "description": "Food"}

        resp = api.put(f"/api/categories/{cat['id']}", json={"name": "Snacks"})
        assert resp.get_json()["name"] == "Snacks"
        assert [c["name"] for c in api.get("/api/categories").get_json()] == ["Snacks"]

        assert api.delete(f"/api/categories/{cat['id']}").status_code == 200
        assert api.get(f"/api/categories/{cat['id']}").status_code == 404

        orphan = api.get(f"/api/products/{product['id']}").get_json()
        assert orphan["category_id"] == cat["id"]
        assert "category" not in orphan

    def test_empty_update(self, api):
        cat = api.post("/api/categories", json={"name": "Minuman"}).get_json()
        resp = api.put(f"/api/categories/{cat['id']}", json={})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "No fields to update"


class TestCheckout:
    def test_checkout_and_fetch(self, api):
        p = _create_product(api, price=3500, stock=10)

        resp = api.post("/api/checkout", json={"items": [{"product_id": p["id"], "quantity": 2}]})
        assert resp.status_code == 201
        txn = resp.get_json()
        assert txn["total_amount"] == 7000
        assert txn["created_at"].endswith("Z")
        assert txn["details"] == [{
            "id": txn["details"][0]["id"],
            "transaction_id": txn["id"],
            "product_id": p["id"],
            "product_name": "Indomie",
            "quantity": 2,
            "subtotal": 7000,
        }]

        assert api.get(f"/api/products/{p['id']}").get_json()["stock"] == 8

        fetched = api.get(f"/api/transactions/{txn['id']}")
        assert fetched.status_code == 200
        assert fetched.get_json()["details"][0]["product_name"] == "Indomie"

    def test_insufficient_stock(self, api):
        p = _create_product(api, stock=1)

        resp = api.post("/api/checkout", json={"items": [{"product_id": p["id"], "quantity": 2}]})

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["type"] == "validation_error"
        assert body["error"] == "insufficient stock for product Indomie (available: 1, requested: 2)"
        assert body["details"] == {"product_id": p["id"], "available": 1, "requested": 2}
        assert api.get(f"/api/products/{p['id']}").get_json()["stock"] == 1

    def test_unknown_product(self, api):
        resp = api.post("/api/checkout", json={"items": [{"product_id": 999999, "quantity": 1}]})
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "product id 999999 not found", "type": "not_found"}

    @pytest.mark.parametrize("body,message", [
        ({"items": []}, "items cannot be empty"),
        ({}, "items cannot be empty"),
        ({"items": [{"product_id": 0, "quantity": 1}]}, "item[0] product_id must be positive"),
        ({"items": [{"product_id": 1, "quantity": 0}]}, "item[0] quantity must be positive"),
        ({"items": [{"product_id": 1, "quantity": 1.5}]}, "item[0] quantity must be an integer"),
    ])
    def test_malformed_requests(self, api, body, message):
        resp = api.post("/api/checkout", json=body)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": message, "type": "validation_error"}

    def test_unknown_transaction(self, api):
        resp = api.get("/api/transactions/999999")
        assert resp.status_code == 404

    def test_internal_error_is_generic(self, client, monkeypatch):
        p = _create_product(client, stock=5)

        def boom(self, total_amount):
            raise RuntimeError("connection reset by peer")

        monkeypatch.setattr(SqlCheckoutUnit, "insert_transaction", boom)

        resp = client.post("/api/checkout", json={"items": [{"product_id": p["id"], "quantity": 1}]})

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error", "type": "internal_error"}
        assert client.get(f"/api/products/{p['id']}").get_json()["stock"] == 5


class TestReports:
    def test_today_after_checkout(self, api):
        p = _create_product(api, name="Teh", price=5000, stock=10)
        api.post("/api/checkout", json={"items": [{"product_id": p["id"], "quantity": 3}]})

        resp = api.get("/api/report/today")

        assert resp.status_code == 200
        assert resp.get_json() == {
            "total_revenue": 15000,
            "total_transaction": 1,
            "top_product": {"name": "Teh", "sold_qty": 3},
        }

    def test_range_requires_both_dates(self, api):
        resp = api.get("/api/report?start_date=2024-01-01")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "end_date is required"

    def test_range_rejects_inverted_window(self, api):
        resp = api.get("/api/report?start_date=2024-02-01&end_date=2024-01-01")
        assert resp.status_code == 400

    def test_empty_range(self, api):
        resp = api.get("/api/report?start_date=1999-01-01&end_date=1999-12-31")
        assert resp.get_json() == {"total_revenue": 0, "total_transaction": 0, "top_product": None}


class TestCrossCutting:
    def test_cors_headers_on_every_response(self, api):
        resp = api.get("/", headers={"Origin": "http://pos.example"})
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert resp.headers["Access-Control-Allow-Methods"] == "GET, POST, PUT, DELETE, OPTIONS"
        assert resp.headers["Access-Control-Allow-Headers"] == "Content-Type, Authorization"

        resp = api.get("/api/products/999999")
        assert resp.status_code == 404
        assert resp.headers["Access-Control-Allow-Origin"] == "*"

    def test_preflight_answered_for_any_path(self, api):
        for path in ("/api/checkout", "/no/such/route"):
            resp = api.options(path, headers={"Access-Control-Request-Method": "POST"})
            assert resp.status_code == 200
            assert resp.headers["Access-Control-Allow-Origin"] == "*"

    def test_each_request_is_logged_with_its_id(self, api, caplog):
        caplog.set_level(logging.INFO, logger="cashier")

        first = api.get("/api/products")
        second = api.get("/api/products")

        request_id = first.headers["X-Request-ID"]
        assert request_id
        assert request_id != second.headers["X-Request-ID"]

        lines = [r.getMessage() for r in caplog.records if r.name == "cashier"]
        matching = [line for line in lines if request_id in line]
        assert len(matching) == 1
        assert matching[0].startswith("GET /api/products -> 200 (")

    def test_caller_request_id_is_echoed(self, api):
        resp = api.get("/", headers={"X-Request-ID": "till-7-0001"})
        assert resp.headers["X-Request-ID"] == "till-7-0001"

    def test_ids_past_64bit_range_are_not_found(self, api):
        big = 2**63
        resp = api.post("/api/checkout", json={"items": [{"product_id": big, "quantity": 1}]})
        assert resp.status_code == 404
        assert resp.get_json() == {"error": f"product id {big} not found", "type": "not_found"}

        assert api.get(f"/api/products/{big}").status_code == 404
        assert api.get(f"/api/transactions/{big}").status_code == 404

    def test_stock_past_64bit_range_is_rejected(self, api):
        resp = api.post("/api/products", json={"name": "X", "price": 1, "stock": 2**63})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "stock is out of range", "type": "validation_error"}
