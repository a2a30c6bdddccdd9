"""
Analytics API Endpoints

Financial reporting over the full order history.
"""

from decimal import Decimal
from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from scm.database.connection import get_db_dependency
from scm.services.analytics import FinancialAnalyticsService

router = APIRouter()
logger = structlog.get_logger(__name__)


class ProductPerformanceResponse(BaseModel):
    """Per-product revenue ranking entry"""
    product_name: str
    revenue: Decimal
    profit: Decimal
    margin_percentage: Decimal

    class Config:
        from_attributes = True


class FinancialMetricsResponse(BaseModel):
    """Financial summary"""
    total_revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    net_margin_percentage: Decimal
    average_order_value: Decimal
    inventory_valuation: Decimal
    order_count: int
    revenue_trend: Dict[str, Decimal]
    profit_trend: Dict[str, Decimal]
    top_products: List[ProductPerformanceResponse]

    class Config:
        from_attributes = True


@router.get("/summary", response_model=FinancialMetricsResponse)
async def get_financial_metrics(
    db: AsyncSession = Depends(get_db_dependency),
) -> FinancialMetricsResponse:
    """
    Get revenue, COGS, margin, average order value, inventory valuation,
    trends and the top products by revenue.
    """
    logger.info("get_financial_metrics called")
    metrics = await FinancialAnalyticsService(db).get_financial_metrics()
    return FinancialMetricsResponse.model_validate(metrics)
