"""
Unit Tests - Dashboard Snapshot
"""
from decimal import Decimal
from types import SimpleNamespace

from scm.database.models import OrderStatus, Product
from scm.services.dashboard import build_dashboard_snapshot


def make_product(quantity, min_stock_level, price="1.00"):
    return SimpleNamespace(quantity=quantity, min_stock_level=min_stock_level, price=Decimal(price))


class TestDashboardSnapshot:
    """Tests for dashboard counts"""

    def test_low_stock_threshold_is_inclusive(self):
        """quantity == min_stock_level counts as low stock"""
        products = [make_product(5, 5), make_product(6, 5), make_product(0, 0)]

        snapshot = build_dashboard_snapshot(products, [], supplier_count=0)

        assert snapshot.low_stock_count == 2

    def test_stock_value_uses_selling_price(self):
        products = [make_product(3, 0, "10.00"), make_product(2, 0, "2.50")]

        snapshot = build_dashboard_snapshot(products, [], supplier_count=1)

        assert snapshot.total_stock_value == Decimal("35.00")

    def test_counts(self):
        orders = [
            SimpleNamespace(status=OrderStatus.PENDING),
            SimpleNamespace(status=OrderStatus.COMPLETED),
            SimpleNamespace(status=OrderStatus.PENDING),
            SimpleNamespace(status=OrderStatus.CANCELLED),
        ]

        snapshot = build_dashboard_snapshot([make_product(1, 0)], orders, supplier_count=2)

        assert snapshot.total_products == 1
        assert snapshot.total_suppliers == 2
        assert snapshot.total_orders == 4
        assert snapshot.pending_orders == 2

    def test_empty(self):
        snapshot = build_dashboard_snapshot([], [], supplier_count=0)

        assert snapshot.total_stock_value == Decimal("0")
        assert snapshot.low_stock_count == 0


def test_product_is_low_stock_property():
    """Model property agrees with the dashboard threshold"""
    assert Product(quantity=5, min_stock_level=5).is_low_stock
    assert not Product(quantity=6, min_stock_level=5).is_low_stock
