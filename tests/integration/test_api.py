"""
Integration Tests - REST API
"""
import uuid
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from scm.database.connection import get_db_dependency
from scm.serving.api import create_api_app


@pytest.fixture
async def client(session_factory):
    """API client bound to the test database"""
    app = create_api_app()

    async def override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_dependency] = override_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def catalog_ids(client):
    """Supplier and one product (price 10.00, cost 6.00, 20 on hand) created over HTTP"""
    supplier = await client.post("/api/v1/suppliers", json={"name": "Acme Components"})
    assert supplier.status_code == 201
    supplier_id = supplier.json()["id"]

    product = await client.post("/api/v1/products", json={
        "name": "Widget",
        "sku": "WID-001",
        "quantity": 20,
        "price": "10.00",
        "cost_price": "6.00",
        "min_stock_level": 5,
        "supplier_id": supplier_id,
    })
    assert product.status_code == 201
    return supplier_id, product.json()["id"]


async def place_order(client, supplier_id, product_id, quantity=3):
    response = await client.post("/api/v1/orders", json={
        "supplier_id": supplier_id,
        "items": [{"product_id": product_id, "quantity": quantity}],
    })
    assert response.status_code == 201
    return response.json()


class TestOrdersAPI:
    """Tests for order endpoints"""

    async def test_create_order(self, client, catalog_ids):
        supplier_id, product_id = catalog_ids

        order = await place_order(client, supplier_id, product_id)

        assert order["status"] == "PENDING"
        assert Decimal(order["total_amount"]) == Decimal("30.00")
        assert order["supplier"]["id"] == supplier_id
        assert order["items"][0]["product"]["sku"] == "WID-001"
        assert Decimal(order["items"][0]["unit_price"]) == Decimal("10.00")

    async def test_complete_order_updates_stock(self, client, catalog_ids):
        supplier_id, product_id = catalog_ids
        order = await place_order(client, supplier_id, product_id)

        response = await client.put(
            f"/api/v1/orders/{order['id']}/status", params={"status": "COMPLETED"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"
        product = (await client.get(f"/api/v1/products/{product_id}")).json()
        assert product["quantity"] == 23

    async def test_unknown_order_is_404(self, client):
        response = await client.get(f"/api/v1/orders/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"
        assert response.json()["entity"] == "Order"

    async def test_unknown_product_in_order_is_404(self, client, catalog_ids):
        supplier_id, _ = catalog_ids

        response = await client.post("/api/v1/orders", json={
            "supplier_id": supplier_id,
            "items": [{"product_id": str(uuid.uuid4()), "quantity": 1}],
        })

        assert response.status_code == 404
        assert response.json()["entity"] == "Product"

    async def test_unrecognized_status_is_rejected(self, client, catalog_ids):
        supplier_id, product_id = catalog_ids
        order = await place_order(client, supplier_id, product_id)

        response = await client.put(
            f"/api/v1/orders/{order['id']}/status", params={"status": "SHIPPED"}
        )

        assert response.status_code == 422

    @pytest.mark.parametrize("items", [[], [{"quantity": 0}]])
    async def test_malformed_order_is_rejected(self, client, catalog_ids, items):
        supplier_id, product_id = catalog_ids
        for item in items:
            item["product_id"] = product_id

        response = await client.post(
            "/api/v1/orders", json={"supplier_id": supplier_id, "items": items}
        )

        assert response.status_code == 422

    async def test_insufficient_stock_is_400(self, client, catalog_ids):
        supplier_id, product_id = catalog_ids
        order = await place_order(client, supplier_id, product_id, quantity=10)
        await client.put(f"/api/v1/orders/{order['id']}/status", params={"status": "COMPLETED"})

        await client.put(f"/api/v1/products/{product_id}", json={
            "name": "Widget",
            "sku": "WID-001",
            "quantity": 2,
            "price": "10.00",
            "cost_price": "6.00",
            "min_stock_level": 5,
            "supplier_id": supplier_id,
        })

        response = await client.put(
            f"/api/v1/orders/{order['id']}/status", params={"status": "CANCELLED"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_INPUT"
        assert response.json()["delta"] == -10

    async def test_delete_order(self, client, catalog_ids):
        supplier_id, product_id = catalog_ids
        order = await place_order(client, supplier_id, product_id)

        response = await client.delete(f"/api/v1/orders/{order['id']}")

        assert response.status_code == 204
        assert (await client.get(f"/api/v1/orders/{order['id']}")).status_code == 404


class TestReportingAPI:
    """Tests for analytics and dashboard endpoints"""

    async def test_financial_summary(self, client, catalog_ids):
        supplier_id, product_id = catalog_ids
        order = await place_order(client, supplier_id, product_id)
        await client.put(f"/api/v1/orders/{order['id']}/status", params={"status": "COMPLETED"})

        response = await client.get("/api/v1/analytics/summary")

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["total_revenue"]) == Decimal("30.00")
        assert Decimal(body["cogs"]) == Decimal("18.00")
        assert Decimal(body["gross_profit"]) == Decimal("12.00")
        assert Decimal(body["net_margin_percentage"]) == Decimal("40")
        assert Decimal(body["inventory_valuation"]) == Decimal("138.00")
        assert body["top_products"][0]["product_name"] == "Widget"

    async def test_empty_summary(self, client):
        body = (await client.get("/api/v1/analytics/summary")).json()

        assert Decimal(body["total_revenue"]) == 0
        assert Decimal(body["net_margin_percentage"]) == 0
        assert body["top_products"] == []

    async def test_dashboard_stats(self, client, catalog_ids):
        supplier_id, product_id = catalog_ids
        await place_order(client, supplier_id, product_id)

        body = (await client.get("/api/v1/dashboard/stats")).json()

        assert body["total_products"] == 1
        assert body["total_suppliers"] == 1
        assert body["pending_orders"] == 1
        assert body["low_stock_count"] == 0
        assert Decimal(body["total_stock_value"]) == Decimal("200.00")


class TestOperationalAPI:
    """Tests for probes and middleware"""

    async def test_liveness(self, client):
        response = await client.get("/api/v1/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    async def test_response_headers(self, client):
        response = await client.get("/api/v1/health/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-RateLimit-Remaining" in response.headers

    async def test_metrics_after_completion(self, client, catalog_ids):
        """Status transitions and stock movement are exported for scraping"""
        supplier_id, product_id = catalog_ids
        order = await place_order(client, supplier_id, product_id)
        await client.put(f"/api/v1/orders/{order['id']}/status", params={"status": "COMPLETED"})

        response = await client.get("/api/v1/metrics")

        assert response.status_code == 200
        assert 'scm_order_status_transitions_total{old_status="PENDING",new_status="COMPLETED"}' in response.text
        assert 'scm_stock_units_adjusted_total{direction="in"}' in response.text
        assert "scm_http_request_duration_seconds_bucket" in response.text


class TestCatalogAPI:
    """Tests for supplier and product endpoints"""

    async def test_product_with_unknown_supplier_is_404(self, client):
        response = await client.post("/api/v1/products", json={
            "name": "Orphan",
            "sku": "ORP-1",
            "price": "1.00",
            "supplier_id": str(uuid.uuid4()),
        })

        assert response.status_code == 404
        assert response.json()["entity"] == "Supplier"

    async def test_low_stock_listing(self, client, catalog_ids):
        supplier_id, _ = catalog_ids
        await client.post("/api/v1/products", json={
            "name": "Gadget",
            "sku": "GAD-001",
            "quantity": 5,
            "price": "2.00",
            "min_stock_level": 5,
            "supplier_id": supplier_id,
        })

        low = (await client.get("/api/v1/products/low-stock")).json()

        assert [p["sku"] for p in low] == ["GAD-001"]
        assert low[0]["is_low_stock"] is True

    async def test_products_filtered_by_supplier(self, client, catalog_ids):
        supplier_id, product_id = catalog_ids

        listed = (await client.get("/api/v1/products", params={"supplier_id": supplier_id})).json()
        other = (await client.get("/api/v1/products", params={"supplier_id": str(uuid.uuid4())})).json()

        assert [p["id"] for p in listed] == [product_id]
        assert other == []

    async def test_product_in_use_is_409(self, client, catalog_ids):
        """A product on an order stays; the summary keeps working"""
        supplier_id, product_id = catalog_ids
        await place_order(client, supplier_id, product_id)

        response = await client.delete(f"/api/v1/products/{product_id}")

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "CONFLICT"
        assert body["referenced_by"] == "order items"
        assert "Retry-After" not in response.headers
        assert (await client.get(f"/api/v1/products/{product_id}")).status_code == 200

        summary = await client.get("/api/v1/analytics/summary")
        assert summary.status_code == 200
        assert Decimal(summary.json()["total_revenue"]) == Decimal("30.00")

    async def test_supplier_with_orders_is_409(self, client, catalog_ids):
        supplier_id, product_id = catalog_ids
        await place_order(client, supplier_id, product_id)

        response = await client.delete(f"/api/v1/suppliers/{supplier_id}")

        assert response.status_code == 409
        assert response.json()["entity"] == "Supplier"

    async def test_unused_product_is_deleted(self, client, catalog_ids):
        _, product_id = catalog_ids

        response = await client.delete(f"/api/v1/products/{product_id}")

        assert response.status_code == 204
        assert (await client.get(f"/api/v1/products/{product_id}")).status_code == 404

    async def test_duplicate_sku_is_409(self, client, catalog_ids):
        """Constraint violations are not reported as retryable"""
        supplier_id, _ = catalog_ids

        response = await client.post("/api/v1/products", json={
            "name": "Widget again",
            "sku": "WID-001",
            "price": "1.00",
            "supplier_id": supplier_id,
        })

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "CONFLICT"
        assert body["operation"] == "save_product"
        assert body.get("retryable") is not True
        assert "Retry-After" not in response.headers
