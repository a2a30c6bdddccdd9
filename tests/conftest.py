"""
Test Suite Configuration
"""
import pytest
from decimal import Decimal
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from scm.config import Settings
from scm.database.connection import create_session_factory, enable_sqlite_foreign_keys
from scm.database.models import Base, Product, Supplier


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
async def test_engine(tmp_path):
    """File-backed SQLite engine so every connection sees the same schema"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def supplier(test_db) -> Supplier:
    supplier = Supplier(name="Acme Components", contact_info="555-0100", address="1 Main St")
    test_db.add(supplier)
    await test_db.commit()
    return supplier


@pytest.fixture
async def product(test_db, supplier) -> Product:
    """P: price 10.00, cost 6.00, 20 on hand"""
    product = Product(
        name="Widget",
        sku="WID-001",
        category="parts",
        quantity=20,
        min_stock_level=5,
        price=Decimal("10.00"),
        cost_price=Decimal("6.00"),
        supplier_id=supplier.id,
    )
    test_db.add(product)
    await test_db.commit()
    return product


@pytest.fixture
async def second_product(test_db, supplier) -> Product:
    product = Product(
        name="Gadget",
        sku="GAD-001",
        category="parts",
        quantity=4,
        min_stock_level=10,
        price=Decimal("25.50"),
        cost_price=None,
        supplier_id=supplier.id,
    )
    test_db.add(product)
    await test_db.commit()
    return product
