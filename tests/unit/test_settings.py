"""
Unit Tests - Configuration and Error Types
"""
import uuid

import pytest
from pydantic import ValidationError

from scm.config.settings import AnalyticsSettings, DatabaseSettings, Settings
from scm.exceptions import (
    ConflictError,
    EntityInUseError,
    InsufficientStockError,
    IntegrityConflictError,
    InvalidInputError,
    NotFoundError,
    OrderNotFoundError,
    TransactionFailureError,
)


class TestSettings:
    """Tests for configuration loading"""

    def test_defaults(self, test_settings):
        assert test_settings.app_env == "testing"
        assert test_settings.analytics.top_products_limit == 5
        assert test_settings.analytics.trend_granularity == "day"

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(app_env="qa")

    def test_analytics_from_environment(self, monkeypatch):
        monkeypatch.setenv("ANALYTICS_TOP_PRODUCTS_LIMIT", "3")
        monkeypatch.setenv("ANALYTICS_TREND_GRANULARITY", "Month")

        analytics = AnalyticsSettings()

        assert analytics.top_products_limit == 3
        assert analytics.trend_granularity == "month"

    def test_invalid_granularity(self):
        with pytest.raises(ValidationError):
            AnalyticsSettings(trend_granularity="hour")

    def test_invalid_limit(self):
        with pytest.raises(ValidationError):
            AnalyticsSettings(top_products_limit=0)

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./local.db")

        assert DatabaseSettings().async_url == "sqlite+aiosqlite:///./local.db"

    def test_database_url_from_parts(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        url = DatabaseSettings(host="db", port=5433, password="pw").async_url

        assert url.startswith("postgresql+asyncpg://")
        assert "@db:5433/" in url


class TestErrors:
    """Tests for the error hierarchy"""

    def test_not_found_payload(self):
        order_id = uuid.uuid4()
        exc = OrderNotFoundError(order_id)

        assert isinstance(exc, NotFoundError)
        assert exc.to_dict() == {
            "error": "NOT_FOUND",
            "detail": f"Order not found: {order_id}",
            "entity": "Order",
            "entity_id": str(order_id),
        }

    def test_insufficient_stock_is_invalid_input(self):
        exc = InsufficientStockError(uuid.uuid4(), on_hand=2, delta=-5)

        assert isinstance(exc, InvalidInputError)
        assert not exc.retryable
        assert exc.to_dict()["on_hand"] == 2

    def test_transaction_failure_is_retryable(self):
        exc = TransactionFailureError("update_order_status", reason="OperationalError")

        assert exc.retryable
        assert exc.to_dict()["retryable"] is True
        assert "update_order_status" in exc.message

    def test_entity_in_use_payload(self):
        product_id = uuid.uuid4()
        exc = EntityInUseError("Product", product_id, referenced_by="order items")

        assert isinstance(exc, ConflictError)
        assert isinstance(exc, InvalidInputError)
        assert not exc.retryable
        assert exc.to_dict() == {
            "error": "CONFLICT",
            "detail": f"Product {product_id} is still referenced by order items",
            "entity": "Product",
            "entity_id": str(product_id),
            "referenced_by": "order items",
        }

    def test_integrity_conflict_is_not_retryable(self):
        exc = IntegrityConflictError("save_product", reason="UNIQUE constraint failed: products.sku")

        assert not exc.retryable
        assert "retryable" not in exc.to_dict()
        assert exc.to_dict()["operation"] == "save_product"
        assert "products.sku" in exc.message
