"""
Financial Analytics Engine

Batch computation of revenue, cost of goods sold, margin, average order value,
inventory valuation, revenue/profit trends and per-product performance from
the full order history and product catalog.

All money is ``Decimal``. Ratios are quantized to 4 places and averages to
2 places, both ROUND_HALF_UP. Nothing is cached: every call recomputes from
the ledger.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scm.config import get_settings
from scm.config.settings import AnalyticsSettings
from scm.database.models import Order, Product

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
RATIO_PLACES = Decimal("0.0001")
CENT = Decimal("0.01")


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class ProductPerformance:
    """Revenue and profit of every order line sharing one product name"""
    product_name: str
    revenue: Decimal
    profit: Decimal
    margin_percentage: Decimal


@dataclass
class FinancialMetrics:
    """Financial summary of the whole order history"""
    total_revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    net_margin_percentage: Decimal
    average_order_value: Decimal
    inventory_valuation: Decimal
    order_count: int = 0
    revenue_trend: Dict[str, Decimal] = field(default_factory=dict)
    profit_trend: Dict[str, Decimal] = field(default_factory=dict)
    top_products: List[ProductPerformance] = field(default_factory=list)


@dataclass
class _ProductTotals:
    revenue: Decimal = ZERO
    cost: Decimal = ZERO


# =============================================================================
# ARITHMETIC
# =============================================================================

def money(value: Optional[Decimal]) -> Decimal:
    """Treat a missing amount as zero"""
    return ZERO if value is None else value


def margin_percentage(profit: Decimal, revenue: Decimal) -> Decimal:
    """
    ``profit / revenue`` rounded HALF_UP to 4 places, then scaled to percent.

    Zero revenue yields a zero margin instead of a division error.
    """
    if revenue == ZERO:
        return ZERO
    return (profit / revenue).quantize(RATIO_PLACES, rounding=ROUND_HALF_UP) * HUNDRED


def average(total: Decimal, count: int) -> Decimal:
    """Mean rounded HALF_UP to cents; zero when there is nothing to average"""
    if count == 0:
        return ZERO
    return (total / Decimal(count)).quantize(CENT, rounding=ROUND_HALF_UP)


def bucket_key(timestamp: datetime, granularity: str = "day") -> str:
    """
    Trend bucket label for a timestamp.

    day -> ``2024-03-09``, week -> ISO ``2024-W10``, month -> ``2024-03``
    """
    if granularity == "day":
        return timestamp.date().isoformat()
    if granularity == "week":
        year, week, _ = timestamp.isocalendar()
        return f"{year}-W{week:02d}"
    if granularity == "month":
        return timestamp.strftime("%Y-%m")
    raise ValueError(f"Unknown trend granularity: {granularity}")


def order_cost(order) -> Decimal:
    """Cost of goods for one order; lines without a cost snapshot count as zero"""
    return sum((money(item.cost) * item.quantity for item in order.items), ZERO)


# =============================================================================
# AGGREGATIONS
# =============================================================================

def compute_product_performance(orders: Iterable, limit: int = 5) -> List[ProductPerformance]:
    """
    Rank products by revenue across all order lines.

    Lines are grouped by product *name*, so distinct catalog entries sharing
    a name are reported together. Equal revenues keep first-seen order.
    """
    totals: Dict[str, _ProductTotals] = {}

    for order in orders:
        for item in order.items:
            entry = totals.setdefault(item.product.name, _ProductTotals())
            entry.revenue += money(item.unit_price) * item.quantity
            entry.cost += money(item.cost) * item.quantity

    performance = []
    for name, entry in totals.items():
        profit = entry.revenue - entry.cost
        performance.append(ProductPerformance(
            product_name=name,
            revenue=entry.revenue,
            profit=profit,
            margin_percentage=margin_percentage(profit, entry.revenue),
        ))

    # sorted() is stable, reverse included
    performance = sorted(performance, key=lambda p: p.revenue, reverse=True)
    return performance[:limit]


def compute_trends(orders: Iterable, granularity: str = "day") -> tuple:
    """Revenue and profit per time bucket, keys ascending"""
    revenue: Dict[str, Decimal] = {}
    profit: Dict[str, Decimal] = {}

    for order in orders:
        key = bucket_key(order.order_date, granularity)
        order_revenue = money(order.total_amount)
        revenue[key] = revenue.get(key, ZERO) + order_revenue
        profit[key] = profit.get(key, ZERO) + order_revenue - order_cost(order)

    return dict(sorted(revenue.items())), dict(sorted(profit.items()))


def compute_financial_metrics(
    orders: Sequence,
    products: Iterable,
    *,
    top_products_limit: int = 5,
    granularity: str = "day",
) -> FinancialMetrics:
    """
    Derive the financial summary from orders and the product catalog.

    Args:
        orders: Orders with ``total_amount``, ``order_date`` and ``items``
        products: Products with ``cost_price`` and ``quantity``
        top_products_limit: Size of the product performance ranking
        granularity: Trend bucket size (day, week, month)
    """
    total_revenue = sum((money(order.total_amount) for order in orders), ZERO)
    cogs = sum((order_cost(order) for order in orders), ZERO)
    gross_profit = total_revenue - cogs

    inventory_valuation = sum(
        (money(product.cost_price) * product.quantity for product in products), ZERO
    )

    revenue_trend, profit_trend = compute_trends(orders, granularity)

    return FinancialMetrics(
        total_revenue=total_revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        net_margin_percentage=margin_percentage(gross_profit, total_revenue),
        average_order_value=average(total_revenue, len(orders)),
        inventory_valuation=inventory_valuation,
        order_count=len(orders),
        revenue_trend=revenue_trend,
        profit_trend=profit_trend,
        top_products=compute_product_performance(orders, top_products_limit),
    )


# =============================================================================
# SERVICE
# =============================================================================

class FinancialAnalyticsService:
    """Reads the ledger and catalog and computes ``FinancialMetrics``."""

    def __init__(self, session: AsyncSession, settings: Optional[AnalyticsSettings] = None):
        self.session = session
        self.settings = settings or get_settings().analytics

    async def get_financial_metrics(self) -> FinancialMetrics:
        orders = list((await self.session.execute(
            select(Order).order_by(Order.order_date)
        )).scalars().all())
        products = list((await self.session.execute(select(Product))).scalars().all())

        metrics = compute_financial_metrics(
            orders,
            products,
            top_products_limit=self.settings.top_products_limit,
            granularity=self.settings.trend_granularity,
        )

        logger.info(
            "Financial metrics computed",
            orders=metrics.order_count,
            products=len(products),
            total_revenue=str(metrics.total_revenue),
            net_margin_percentage=str(metrics.net_margin_percentage),
        )
        return metrics
