"""Tests for the FastAPI API."""

import pytest
from fastapi.testclient import TestClient

from storefront.api import app, get_database, get_settings
from storefront.config import Settings


@pytest.fixture
def api_client(db, product_p):
    """Test client bound to the test database."""
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_settings] = lambda: Settings()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def place(api_client, product_id, quantity, market_id="market-m"):
    return api_client.post(
        "/api/orders",
        json={
            "customer_id": "cust1",
            "market_id": market_id,
            "items": [{"product_id": product_id, "quantity": quantity}],
        },
    )


class TestHealthCheck:
    def test_health(self, api_client):
        response = api_client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["market_count"] == 2


class TestCatalog:
    def test_list_markets(self, api_client):
        data = api_client.get("/api/markets").json()
        assert data["count"] == 2
        assert {m["id"] for m in data["markets"]} == {"market-m", "market-n"}

    def test_list_products_with_final_price(self, api_client, product_p):
        response = api_client.get("/api/markets/market-m/products")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["products"][0]["final_price"] == 18.0

    def test_search_products(self, api_client):
        assert api_client.get("/api/markets/market-m/products?q=product").json()["count"] == 1
        assert api_client.get("/api/markets/market-m/products?q=zzz").json()["count"] == 0

    def test_unknown_market_404(self, api_client):
        response = api_client.get("/api/markets/nowhere/products")
        assert response.status_code == 404
        assert response.json()["error_type"] == "MarketNotFoundError"

    def test_create_product(self, api_client):
        response = api_client.post(
            "/api/markets/market-n/products",
            json={"name": "Bread", "price": 2.5, "stock": 4, "discount": 20},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["market_id"] == "market-n"
        assert data["final_price"] == 2.0

    def test_patch_product(self, api_client, product_p):
        response = api_client.patch(f"/api/products/{product_p.id}", json={"name": "Renamed"})
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_patch_without_fields_400(self, api_client, product_p):
        response = api_client.patch(f"/api/products/{product_p.id}", json={})
        assert response.status_code == 400
        assert response.json() == {"detail": "No fields to update", "error_type": "ValidationError"}

    def test_patch_stock(self, api_client, product_p):
        response = api_client.patch(f"/api/products/{product_p.id}", json={"stock": 4})
        assert response.status_code == 200
        assert response.json()["stock"] == 4

    def test_set_price_discount_stock(self, api_client, product_p):
        assert api_client.put(f"/api/products/{product_p.id}/price", json={"price": 30}).json()["price"] == 30
        assert api_client.put(f"/api/products/{product_p.id}/discount", json={"discount": 50}).json()["final_price"] == 15
        assert api_client.put(f"/api/products/{product_p.id}/stock", json={"stock": 3}).json()["stock"] == 3

    @pytest.mark.parametrize(
        "path,body",
        [("price", {"price": -1}), ("discount", {"discount": 150}), ("stock", {"stock": -5})],
    )
    def test_invalid_values_400(self, api_client, product_p, path, body):
        response = api_client.put(f"/api/products/{product_p.id}/{path}", json=body)
        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"

    def test_get_and_delete_product(self, api_client, product_p):
        assert api_client.get(f"/api/products/{product_p.id}").status_code == 200
        assert api_client.delete(f"/api/products/{product_p.id}").status_code == 200
        assert api_client.get(f"/api/products/{product_p.id}").status_code == 404
        assert api_client.delete(f"/api/products/{product_p.id}").status_code == 404


class TestOrders:
    def test_create_order(self, api_client, db, product_p):
        response = place(api_client, product_p.id, 3)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["total_amount"] == 54.0
        assert data["items"][0]["subtotal"] == 54.0
        assert db.catalog.get_by_id(product_p.id).stock == 7

    def test_insufficient_stock_409(self, api_client, db, product_p):
        response = place(api_client, product_p.id, 11)

        assert response.status_code == 409
        assert response.json()["error_type"] == "InsufficientStockError"
        assert db.catalog.get_by_id(product_p.id).stock == 10

    def test_unknown_product_404(self, api_client):
        assert place(api_client, "ghost", 1).status_code == 404

    def test_confirm_then_cancel(self, api_client, db, product_p):
        order_id = place(api_client, product_p.id, 3).json()["id"]

        confirmed = api_client.post(f"/api/orders/{order_id}/confirm")
        assert confirmed.status_code == 200
        assert confirmed.json()["confirmed_at"] is not None

        cancelled = api_client.post(f"/api/orders/{order_id}/cancel")
        assert cancelled.status_code == 409
        assert cancelled.json()["error_type"] == "InvalidStateError"
        assert db.catalog.get_by_id(product_p.id).stock == 7

    def test_cancel_restores_stock(self, api_client, db, product_p):
        order_id = place(api_client, product_p.id, 3).json()["id"]

        response = api_client.post(f"/api/orders/{order_id}/cancel")

        assert response.json()["status"] == "CANCELLED"
        assert db.catalog.get_by_id(product_p.id).stock == 10

    def test_order_lookups(self, api_client, product_p):
        first = place(api_client, product_p.id, 1).json()["id"]
        second = place(api_client, product_p.id, 1).json()["id"]
        api_client.post(f"/api/orders/{first}/confirm")

        assert api_client.get(f"/api/orders/{first}").json()["status"] == "CONFIRMED"
        assert api_client.get("/api/orders/nope").status_code == 404
        assert api_client.get("/api/customers/cust1/orders").json()["count"] == 2

        pending = api_client.get("/api/markets/market-m/orders?status=PENDING").json()
        assert [o["id"] for o in pending["orders"]] == [second]

    def test_market_report(self, api_client, product_p):
        order_id = place(api_client, product_p.id, 3).json()["id"]
        api_client.post(f"/api/orders/{order_id}/confirm")

        report = api_client.get("/api/markets/market-m/report").json()

        assert report["total_revenue"] == 54.0
        assert report["confirmed_orders"] == 1
        assert report["product_sales"][0]["quantity_sold"] == 3
