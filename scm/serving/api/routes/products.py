"""
Products API Endpoints

REST API for the product catalog.
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from scm.database.connection import get_db_dependency
from scm.database.models import Product
from scm.services.catalog import CatalogStore

router = APIRouter()


class ProductPayload(BaseModel):
    """Product create/replace request"""
    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=50)
    category: Optional[str] = None
    quantity: int = Field(0, ge=0)
    price: Decimal = Field(..., ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    min_stock_level: int = Field(0, ge=0)
    supplier_id: Optional[UUID] = None


class ProductResponse(BaseModel):
    """Product response"""
    id: UUID
    name: str
    sku: str
    category: Optional[str]
    quantity: int
    price: Decimal
    cost_price: Optional[Decimal]
    min_stock_level: int
    supplier_id: Optional[UUID]
    is_low_stock: bool

    class Config:
        from_attributes = True


def get_catalog(db: AsyncSession = Depends(get_db_dependency)) -> CatalogStore:
    return CatalogStore(db)


@router.get("", response_model=List[ProductResponse])
async def list_products(
    supplier_id: Optional[UUID] = None,
    catalog: CatalogStore = Depends(get_catalog),
) -> List[ProductResponse]:
    """List products, optionally only those of one supplier."""
    products = await catalog.find_all_products(supplier_id=supplier_id)
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/low-stock", response_model=List[ProductResponse])
async def get_low_stock_products(
    catalog: CatalogStore = Depends(get_catalog),
) -> List[ProductResponse]:
    """Get products at or below their minimum stock level."""
    products = await catalog.find_low_stock_products()
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    catalog: CatalogStore = Depends(get_catalog),
) -> ProductResponse:
    """Get product details."""
    product = await catalog.get_product(product_id)
    return ProductResponse.model_validate(product)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    payload: ProductPayload,
    catalog: CatalogStore = Depends(get_catalog),
) -> ProductResponse:
    """Create a product."""
    product = await catalog.save_product(Product(**payload.model_dump()))
    return ProductResponse.model_validate(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    payload: ProductPayload,
    catalog: CatalogStore = Depends(get_catalog),
) -> ProductResponse:
    """
    Replace a product's attributes.

    Existing order lines keep the price and cost they were created with.
    """
    product = await catalog.get_product(product_id)
    for name, value in payload.model_dump().items():
        setattr(product, name, value)
    product = await catalog.save_product(product)
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: UUID,
    catalog: CatalogStore = Depends(get_catalog),
) -> Response:
    """Delete a product."""
    await catalog.delete_product(product_id)
    return Response(status_code=204)
