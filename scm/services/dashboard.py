"""
Dashboard Snapshot

Operational counts and stock value for the landing dashboard. Stock value is
priced at the selling ``price``; the financial inventory valuation uses the
cost basis instead.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

import structlog
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from scm.database.models import Order, OrderStatus, Product, Supplier

logger = structlog.get_logger(__name__)


@dataclass
class DashboardSnapshot:
    """Counts and stock value at one point in time"""
    total_products: int
    total_suppliers: int
    total_orders: int
    low_stock_count: int
    total_stock_value: Decimal
    pending_orders: int


def build_dashboard_snapshot(
    products: Iterable,
    orders: Iterable,
    supplier_count: int,
) -> DashboardSnapshot:
    """
    Assemble the snapshot from catalog products and orders.

    A product is low on stock when ``quantity <= min_stock_level``.
    """
    products = list(products)
    orders = list(orders)

    return DashboardSnapshot(
        total_products=len(products),
        total_suppliers=supplier_count,
        total_orders=len(orders),
        low_stock_count=sum(1 for p in products if p.quantity <= p.min_stock_level),
        total_stock_value=sum((p.price * p.quantity for p in products), Decimal("0")),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
    )


class DashboardService:
    """Read-only dashboard aggregation over one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_stats(self) -> DashboardSnapshot:
        products = (await self.session.execute(select(Product))).scalars().all()
        # Status only; avoid loading every order's items
        orders = (await self.session.execute(select(Order.id, Order.status))).all()
        supplier_count = (await self.session.execute(select(func.count(Supplier.id)))).scalar() or 0

        snapshot = build_dashboard_snapshot(products, orders, supplier_count)

        logger.debug(
            "Dashboard snapshot computed",
            products=snapshot.total_products,
            orders=snapshot.total_orders,
            low_stock=snapshot.low_stock_count,
        )
        return snapshot
