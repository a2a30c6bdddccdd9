"""
Services Module
"""
from .analytics import FinancialAnalyticsService, FinancialMetrics, ProductPerformance, compute_financial_metrics
from .catalog import CatalogStore
from .dashboard import DashboardService, DashboardSnapshot, build_dashboard_snapshot
from .orders import OrderLifecycleService, OrderLine, StockAdjustment, stock_delta

__all__ = [
    "CatalogStore",
    "DashboardService",
    "DashboardSnapshot",
    "FinancialAnalyticsService",
    "FinancialMetrics",
    "OrderLifecycleService",
    "OrderLine",
    "ProductPerformance",
    "StockAdjustment",
    "build_dashboard_snapshot",
    "compute_financial_metrics",
    "stock_delta",
]
