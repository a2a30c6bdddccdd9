"""
Catalog Store

Supplier and product records consumed by the order lifecycle, analytics and
dashboard. Plain keyed CRUD with no derived state.
"""

from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from scm.database.connection import unit_of_work
from scm.database.models import Order, OrderItem, Product, Supplier
from scm.exceptions import EntityInUseError, ProductNotFoundError, SupplierNotFoundError

logger = structlog.get_logger(__name__)


class CatalogStore:
    """Keyed access to suppliers and products over one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # -------------------------------------------------------------------------
    # Suppliers
    # -------------------------------------------------------------------------

    async def find_supplier(self, supplier_id: UUID) -> Optional[Supplier]:
        return await self.session.get(Supplier, supplier_id)

    async def get_supplier(self, supplier_id: UUID) -> Supplier:
        supplier = await self.find_supplier(supplier_id)
        if supplier is None:
            raise SupplierNotFoundError(supplier_id)
        return supplier

    async def find_all_suppliers(self) -> List[Supplier]:
        result = await self.session.execute(select(Supplier).order_by(Supplier.name))
        return list(result.scalars().all())

    async def count_suppliers(self) -> int:
        return (await self.session.execute(select(func.count(Supplier.id)))).scalar() or 0

    async def save_supplier(self, supplier: Supplier) -> Supplier:
        async with unit_of_work(self.session, "save_supplier"):
            self.session.add(supplier)
        logger.info("Supplier saved", supplier_id=str(supplier.id), name=supplier.name)
        return supplier

    async def delete_supplier(self, supplier_id: UUID) -> None:
        """
        Delete a supplier; its products are kept without a supplier.

        Raises:
            SupplierNotFoundError: No supplier with this id
            EntityInUseError: Orders were placed with this supplier
        """
        async with unit_of_work(self.session, "delete_supplier"):
            supplier = await self.get_supplier(supplier_id)
            if await self._is_referenced(Order.supplier_id, supplier_id):
                raise EntityInUseError("Supplier", supplier_id, referenced_by="orders")
            await self.session.delete(supplier)
        logger.info("Supplier deleted", supplier_id=str(supplier_id))

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    async def find_product(self, product_id: UUID) -> Optional[Product]:
        return await self.session.get(Product, product_id)

    async def get_product(self, product_id: UUID) -> Product:
        product = await self.find_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def find_all_products(self, supplier_id: Optional[UUID] = None) -> List[Product]:
        """All products, or only those of one supplier."""
        query = select(Product)
        if supplier_id is not None:
            query = query.where(Product.supplier_id == supplier_id)
        result = await self.session.execute(query.order_by(Product.name))
        return list(result.scalars().all())

    async def find_low_stock_products(self) -> List[Product]:
        """Products at or below their minimum stock level, scarcest first."""
        result = await self.session.execute(
            select(Product)
            .where(Product.quantity <= Product.min_stock_level)
            .order_by(Product.quantity)
        )
        return list(result.scalars().all())

    async def count_products(self) -> int:
        return (await self.session.execute(select(func.count(Product.id)))).scalar() or 0

    async def save_product(self, product: Product) -> Product:
        async with unit_of_work(self.session, "save_product"):
            if product.supplier_id is not None:
                await self.get_supplier(product.supplier_id)
            self.session.add(product)
        logger.info("Product saved", product_id=str(product.id), sku=product.sku)
        return product

    async def delete_product(self, product_id: UUID) -> None:
        """
        Delete a product that no order line refers to.

        Raises:
            ProductNotFoundError: No product with this id
            EntityInUseError: Order lines reference the product
        """
        async with unit_of_work(self.session, "delete_product"):
            product = await self.get_product(product_id)
            if await self._is_referenced(OrderItem.product_id, product_id):
                raise EntityInUseError("Product", product_id, referenced_by="order items")
            await self.session.delete(product)
        logger.info("Product deleted", product_id=str(product_id))

    async def _is_referenced(self, column, entity_id: UUID) -> bool:
        result = await self.session.execute(select(column).where(column == entity_id).limit(1))
        return result.first() is not None
