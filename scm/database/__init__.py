"""
Database Module
"""
from .connection import init_database, close_database, get_db, get_db_dependency, unit_of_work
from .models import Base, Order, OrderItem, OrderStatus, Product, Supplier

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_db_dependency",
    "unit_of_work",
    "Base",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "Supplier",
]
