"""
Dashboard API Endpoints
"""

from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from scm.database.connection import get_db_dependency
from scm.services.dashboard import DashboardService

router = APIRouter()


class DashboardStatsResponse(BaseModel):
    """Operational dashboard counts"""
    total_products: int
    total_suppliers: int
    total_orders: int
    low_stock_count: int
    total_stock_value: Decimal
    pending_orders: int

    class Config:
        from_attributes = True


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db_dependency),
) -> DashboardStatsResponse:
    """Get catalog, order and stock-value counts."""
    snapshot = await DashboardService(db).get_stats()
    return DashboardStatsResponse.model_validate(snapshot)
