"""
Suppliers API Endpoints
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from scm.database.connection import get_db_dependency
from scm.database.models import Supplier
from scm.services.catalog import CatalogStore

router = APIRouter()


class SupplierPayload(BaseModel):
    """Supplier create/replace request"""
    name: str = Field(..., min_length=1, max_length=200)
    contact_info: Optional[str] = None
    address: Optional[str] = None


class SupplierResponse(BaseModel):
    """Supplier response"""
    id: UUID
    name: str
    contact_info: Optional[str]
    address: Optional[str]

    class Config:
        from_attributes = True


def get_catalog(db: AsyncSession = Depends(get_db_dependency)) -> CatalogStore:
    return CatalogStore(db)


@router.get("", response_model=List[SupplierResponse])
async def list_suppliers(catalog: CatalogStore = Depends(get_catalog)) -> List[SupplierResponse]:
    """List suppliers by name."""
    return [SupplierResponse.model_validate(s) for s in await catalog.find_all_suppliers()]


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: UUID,
    catalog: CatalogStore = Depends(get_catalog),
) -> SupplierResponse:
    return SupplierResponse.model_validate(await catalog.get_supplier(supplier_id))


@router.post("", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    payload: SupplierPayload,
    catalog: CatalogStore = Depends(get_catalog),
) -> SupplierResponse:
    supplier = await catalog.save_supplier(Supplier(**payload.model_dump()))
    return SupplierResponse.model_validate(supplier)


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: UUID,
    payload: SupplierPayload,
    catalog: CatalogStore = Depends(get_catalog),
) -> SupplierResponse:
    supplier = await catalog.get_supplier(supplier_id)
    for name, value in payload.model_dump().items():
        setattr(supplier, name, value)
    supplier = await catalog.save_supplier(supplier)
    return SupplierResponse.model_validate(supplier)


@router.delete("/{supplier_id}", status_code=204)
async def delete_supplier(
    supplier_id: UUID,
    catalog: CatalogStore = Depends(get_catalog),
) -> Response:
    await catalog.delete_supplier(supplier_id)
    return Response(status_code=204)
