"""
API Routes Module
"""
from .health import router as health_router
from .orders import router as orders_router
from .products import router as products_router
from .suppliers import router as suppliers_router
from .analytics import router as analytics_router
from .dashboard import router as dashboard_router

__all__ = [
    "health_router",
    "orders_router",
    "products_router",
    "suppliers_router",
    "analytics_router",
    "dashboard_router",
]
