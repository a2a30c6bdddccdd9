"""
Demo Data Seeding

Creates the schema and fills it with a small synthetic catalog and a handful
of purchase orders placed and completed through the order lifecycle, so stock
levels and financial metrics are consistent with the ledger.

Usage:
    python -m scm.ingestion.seed_db
"""

import asyncio
import random
from decimal import Decimal
from typing import List

import structlog
from faker import Faker

from scm.database.connection import get_db, init_database, close_database
from scm.database.models import OrderStatus, Product, Supplier
from scm.services.catalog import CatalogStore
from scm.services.orders import OrderLifecycleService, OrderLine

logger = structlog.get_logger(__name__)

fake = Faker()

# Seed for reproducibility
random.seed(42)
Faker.seed(42)

CATEGORIES = {
    "electronics": ["USB-C Cable", "Wireless Mouse", "Keyboard", "Monitor Stand", "Webcam"],
    "packaging": ["Shipping Box S", "Shipping Box L", "Bubble Wrap", "Packing Tape"],
    "office": ["Printer Paper", "Ballpoint Pens", "Stapler", "Binder Clips"],
}


def _price(low: float, high: float) -> Decimal:
    return Decimal(str(round(random.uniform(low, high), 2)))


async def seed_suppliers(catalog: CatalogStore, n: int = 3) -> List[Supplier]:
    """Create ``n`` suppliers"""
    logger.info("Seeding suppliers...", count=n)
    suppliers = []
    for _ in range(n):
        supplier = Supplier(
            name=fake.company(),
            contact_info=fake.phone_number(),
            address=fake.address(),
        )
        suppliers.append(await catalog.save_supplier(supplier))
    return suppliers


async def seed_products(catalog: CatalogStore, suppliers: List[Supplier]) -> List[Product]:
    """Create one product per catalog name, spread over the suppliers"""
    logger.info("Seeding products...")
    products = []
    for category, names in CATEGORIES.items():
        for name in names:
            price = _price(2, 120)
            product = Product(
                name=name,
                sku=f"SKU-{fake.unique.random_number(digits=6, fix_len=True)}",
                category=category,
                quantity=random.randint(0, 60),
                price=price,
                # a few products have no known cost basis
                cost_price=(price * Decimal("0.6")).quantize(Decimal("0.01")) if random.random() > 0.15 else None,
                min_stock_level=random.choice([5, 10, 15]),
                supplier_id=random.choice(suppliers).id,
            )
            products.append(await catalog.save_product(product))
    return products


async def seed_orders(
    service: OrderLifecycleService,
    suppliers: List[Supplier],
    products: List[Product],
    n: int = 8,
) -> None:
    """Place ``n`` orders and complete or cancel some of them"""
    logger.info("Seeding orders...", count=n)
    for i in range(n):
        supplier = random.choice(suppliers)
        lines = [
            OrderLine(product.id, random.randint(1, 20))
            for product in random.sample(products, k=random.randint(1, 4))
        ]
        order = await service.create_order(supplier.id, lines)

        # first order is always received so the demo has stock movement
        outcome = OrderStatus.COMPLETED if i == 0 else random.choices(
            [OrderStatus.PENDING, OrderStatus.COMPLETED, OrderStatus.CANCELLED],
            weights=[0.4, 0.5, 0.1],
        )[0]
        if outcome != OrderStatus.PENDING:
            await service.update_order_status(order.id, outcome)


async def main():
    logger.info("Starting database seeding...")
    await init_database(create_tables=True)

    try:
        async with get_db() as db:
            catalog = CatalogStore(db)
            suppliers = await seed_suppliers(catalog)
            products = await seed_products(catalog, suppliers)
            await seed_orders(OrderLifecycleService(db), suppliers, products)
        logger.info("Database seeding completed successfully!")
    except Exception as e:
        logger.error("Seeding failed", error=str(e))
        raise
    finally:
        await close_database()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
