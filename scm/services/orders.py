"""
Order Lifecycle Engine

Creates purchase orders against live catalog pricing, replaces and deletes
them, and moves them between statuses. The only stock-affecting rule lives
in ``stock_delta``:

- entering COMPLETED (goods received) adds each line's quantity to stock
- leaving COMPLETED subtracts exactly the same quantities again
- any other transition, including re-setting the current status, is neutral

Creating, editing or deleting an order never touches stock, so deleting a
completed order keeps the goods it brought in.

Every mutation runs inside one ``unit_of_work``: product quantity writes and
the order write are committed together or not at all.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union
from uuid import UUID

import structlog
from prometheus_client import Counter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scm.database.connection import unit_of_work
from scm.database.models import Order, OrderItem, OrderStatus, Product
from scm.exceptions import (
    EmptyOrderError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidStatusError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from scm.services.catalog import CatalogStore

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

STATUS_TRANSITIONS = Counter(
    "scm_order_status_transitions_total",
    "Committed order status changes",
    ["old_status", "new_status"],
)

STOCK_UNITS_ADJUSTED = Counter(
    "scm_stock_units_adjusted_total",
    "Units moved into or out of stock by status changes",
    ["direction"],
)


# =============================================================================
# VALUE OBJECTS
# =============================================================================

@dataclass(frozen=True)
class OrderLine:
    """Requested line: which product and how many units."""
    product_id: UUID
    quantity: int

    def __post_init__(self):
        # bool is an int subclass but never a valid quantity
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise InvalidQuantityError(self.quantity, self.product_id)


@dataclass(frozen=True)
class StockAdjustment:
    """Signed change to one product's on-hand quantity."""
    product_id: UUID
    delta: int


LineInput = Union[OrderLine, Tuple[UUID, int]]


def as_order_lines(lines: Iterable[LineInput]) -> List[OrderLine]:
    """
    Normalize request lines, accepting ``OrderLine`` or ``(product_id, quantity)``.

    Raises:
        EmptyOrderError: No lines given
        InvalidQuantityError: A quantity is not a positive integer
    """
    normalized = [line if isinstance(line, OrderLine) else OrderLine(*line) for line in lines]
    if not normalized:
        raise EmptyOrderError()
    return normalized


def coerce_status(status: Union[OrderStatus, str]) -> OrderStatus:
    """Resolve a wire value to ``OrderStatus``, rejecting anything else."""
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError:
        raise InvalidStatusError(status) from None


# =============================================================================
# STOCK RULE
# =============================================================================

def stock_delta(
    old_status: OrderStatus,
    new_status: OrderStatus,
    items: Sequence,
) -> List[StockAdjustment]:
    """
    Stock adjustments implied by moving an order from ``old_status`` to ``new_status``.

    Args:
        old_status: Current order status
        new_status: Requested order status
        items: Order lines exposing ``product_id`` and ``quantity``

    Returns:
        One adjustment per line in line order, or an empty list when the
        transition does not cross the COMPLETED boundary.
    """
    entering = old_status != OrderStatus.COMPLETED and new_status == OrderStatus.COMPLETED
    leaving = old_status == OrderStatus.COMPLETED and new_status != OrderStatus.COMPLETED

    if not (entering or leaving):
        return []

    sign = 1 if entering else -1
    return [StockAdjustment(item.product_id, sign * item.quantity) for item in items]


def merge_adjustments(adjustments: Iterable[StockAdjustment]) -> Dict[UUID, int]:
    """Net delta per product, in first-seen order."""
    merged: Dict[UUID, int] = {}
    for adjustment in adjustments:
        merged[adjustment.product_id] = merged.get(adjustment.product_id, 0) + adjustment.delta
    return merged


# =============================================================================
# SERVICE
# =============================================================================

class OrderLifecycleService:
    """
    Order state machine over one database session.

    Example:
        service = OrderLifecycleService(session)
        order = await service.create_order(supplier_id, [(product_id, 3)])
        await service.update_order_status(order.id, OrderStatus.COMPLETED)
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.catalog = CatalogStore(session)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_order(self, order_id: UUID) -> Order:
        """
        Get an order with its items.

        Raises:
            OrderNotFoundError: No order with this id
        """
        return await self._load_order(order_id)

    async def list_orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        """All orders, newest first, optionally restricted to one status."""
        query = select(Order)
        if status is not None:
            query = query.where(Order.status == coerce_status(status))
        result = await self.session.execute(query.order_by(Order.order_date.desc()))
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_order(self, supplier_id: UUID, lines: Iterable[LineInput]) -> Order:
        """
        Create a PENDING order priced at the products' current price and cost.

        Raises:
            SupplierNotFoundError / ProductNotFoundError: Unknown reference
            EmptyOrderError / InvalidQuantityError: Malformed lines
            TransactionFailureError: The order could not be committed
        """
        order_lines = as_order_lines(lines)

        async with unit_of_work(self.session, "create_order"):
            supplier = await self.catalog.get_supplier(supplier_id)
            items, total = await self._build_items(order_lines)

            order = Order(
                supplier=supplier,
                supplier_id=supplier.id,
                order_date=datetime.now(timezone.utc),
                status=OrderStatus.PENDING,
                total_amount=total,
                items=items,
            )
            self.session.add(order)

        logger.info(
            "Order created",
            order_id=str(order.id),
            supplier_id=str(supplier_id),
            lines=len(items),
            total_amount=str(total),
        )
        return order

    async def update_order_status(self, order_id: UUID, status: Union[OrderStatus, str]) -> Order:
        """
        Move an order to ``status``, adjusting stock when crossing COMPLETED.

        The order row and every touched product row are locked for the
        duration of the transaction, so concurrent transitions of the same
        order are applied one after the other.

        Raises:
            InvalidStatusError: ``status`` is not an OrderStatus value
            OrderNotFoundError: No order with this id
            InsufficientStockError: Reverting would leave a product below zero
            TransactionFailureError: The transition could not be committed
        """
        new_status = coerce_status(status)

        async with unit_of_work(self.session, "update_order_status"):
            order = await self._load_order(order_id, for_update=True)
            old_status = order.status

            adjustments = stock_delta(old_status, new_status, order.items)
            if adjustments:
                await self._apply_stock_adjustments(adjustments)

            order.status = new_status

        STATUS_TRANSITIONS.labels(old_status=old_status.value, new_status=new_status.value).inc()
        for adjustment in adjustments:
            direction = "in" if adjustment.delta > 0 else "out"
            STOCK_UNITS_ADJUSTED.labels(direction=direction).inc(abs(adjustment.delta))

        logger.info(
            "Order status updated",
            order_id=str(order_id),
            old_status=old_status.value,
            new_status=new_status.value,
            stock_adjustments=len(adjustments),
        )
        return order

    async def update_order(
        self,
        order_id: UUID,
        supplier_id: UUID,
        lines: Iterable[LineInput],
    ) -> Order:
        """
        Replace an order's supplier and lines, re-pricing from the catalog.

        Status and stock are left untouched.
        """
        order_lines = as_order_lines(lines)

        async with unit_of_work(self.session, "update_order"):
            order = await self._load_order(order_id, for_update=True)
            supplier = await self.catalog.get_supplier(supplier_id)
            items, total = await self._build_items(order_lines)

            if order.status == OrderStatus.COMPLETED:
                logger.warning(
                    "Replacing lines of a completed order; received stock is not re-balanced",
                    order_id=str(order_id),
                )

            order.supplier = supplier
            order.supplier_id = supplier.id
            order.items = items
            order.total_amount = total

        logger.info(
            "Order updated",
            order_id=str(order_id),
            lines=len(items),
            total_amount=str(total),
        )
        return order

    async def delete_order(self, order_id: UUID) -> None:
        """Remove an order and its items. Stock is not reverted."""
        async with unit_of_work(self.session, "delete_order"):
            order = await self._load_order(order_id, for_update=True)
            status = order.status
            await self.session.delete(order)

        logger.info("Order deleted", order_id=str(order_id), status=status.value)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _load_order(self, order_id: UUID, for_update: bool = False) -> Order:
        query = select(Order).where(Order.id == order_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        order = (await self.session.execute(query)).scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _build_items(self, lines: Sequence[OrderLine]) -> Tuple[List[OrderItem], Decimal]:
        """Snapshot current price and cost into new items and total them."""
        items: List[OrderItem] = []
        total = Decimal("0")

        for position, line in enumerate(lines):
            product = await self.catalog.get_product(line.product_id)
            item = OrderItem(
                product=product,
                product_id=product.id,
                position=position,
                quantity=line.quantity,
                unit_price=product.price,
                cost=product.cost_price,
            )
            items.append(item)
            total += item.line_total

        return items, total

    async def _apply_stock_adjustments(self, adjustments: List[StockAdjustment]) -> None:
        """Validate every net delta first, then write them all."""
        deltas = merge_adjustments(adjustments)

        result = await self.session.execute(
            select(Product)
            .where(Product.id.in_(list(deltas)))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        products = {product.id: product for product in result.scalars().all()}

        for product_id, delta in deltas.items():
            product = products.get(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            if product.quantity + delta < 0:
                raise InsufficientStockError(product_id, product.quantity, delta)

        for product_id, delta in deltas.items():
            products[product_id].quantity += delta
            logger.debug(
                "Stock adjusted",
                product_id=str(product_id),
                delta=delta,
                quantity=products[product_id].quantity,
            )
