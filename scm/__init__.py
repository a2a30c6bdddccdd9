"""
Supply-Chain Order Service

Purchase order lifecycle, inventory adjustment and financial reporting.
"""

__version__ = "1.0.0"
