"""
Orders API Endpoints

REST API for the purchase order lifecycle.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from scm.database.connection import get_db_dependency
from scm.database.models import OrderStatus
from scm.services.orders import OrderLifecycleService, OrderLine

router = APIRouter()


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class OrderLineRequest(BaseModel):
    """One requested order line"""
    product_id: UUID
    quantity: int = Field(..., gt=0, description="Units ordered")


class OrderRequest(BaseModel):
    """Create or replace an order"""
    supplier_id: UUID
    items: List[OrderLineRequest] = Field(..., min_length=1)

    def to_lines(self) -> List[OrderLine]:
        return [OrderLine(item.product_id, item.quantity) for item in self.items]


class SupplierRef(BaseModel):
    """Supplier reference embedded in an order"""
    id: UUID
    name: str

    class Config:
        from_attributes = True


class ProductRef(BaseModel):
    """Product reference embedded in an order line"""
    id: UUID
    name: str
    sku: str

    class Config:
        from_attributes = True


class OrderItemResponse(BaseModel):
    """Order line with frozen price and cost"""
    id: UUID
    product: ProductRef
    quantity: int
    unit_price: Decimal
    cost: Optional[Decimal]

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Order with its lines"""
    id: UUID
    supplier: SupplierRef
    order_date: datetime
    status: OrderStatus
    total_amount: Decimal
    items: List[OrderItemResponse]

    class Config:
        from_attributes = True


def get_order_service(db: AsyncSession = Depends(get_db_dependency)) -> OrderLifecycleService:
    return OrderLifecycleService(db)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=List[OrderResponse])
async def list_orders(
    status: Optional[OrderStatus] = None,
    service: OrderLifecycleService = Depends(get_order_service),
) -> List[OrderResponse]:
    """List orders, newest first, optionally filtered by status."""
    orders = await service.list_orders(status=status)
    return [OrderResponse.model_validate(o) for o in orders]


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    request: OrderRequest,
    service: OrderLifecycleService = Depends(get_order_service),
) -> OrderResponse:
    """
    Create a PENDING order priced from the current catalog.

    Stock is not changed until the order is completed.
    """
    order = await service.create_order(request.supplier_id, request.to_lines())
    return OrderResponse.model_validate(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    service: OrderLifecycleService = Depends(get_order_service),
) -> OrderResponse:
    """Get order details by ID."""
    order = await service.get_order(order_id)
    return OrderResponse.model_validate(order)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    status: OrderStatus = Query(..., description="Target status"),
    service: OrderLifecycleService = Depends(get_order_service),
) -> OrderResponse:
    """
    Change order status.

    Completing an order adds its quantities to stock; moving it out of
    COMPLETED removes them again.
    """
    order = await service.update_order_status(order_id, status)
    return OrderResponse.model_validate(order)


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: UUID,
    request: OrderRequest,
    service: OrderLifecycleService = Depends(get_order_service),
) -> OrderResponse:
    """Replace supplier and lines of an order."""
    order = await service.update_order(order_id, request.supplier_id, request.to_lines())
    return OrderResponse.model_validate(order)


@router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: UUID,
    service: OrderLifecycleService = Depends(get_order_service),
) -> Response:
    """Delete an order and its lines."""
    await service.delete_order(order_id)
    return Response(status_code=204)
