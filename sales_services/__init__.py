"""
sales_services -- Package init and public API.

Responsibility:
    Orchestration over the pure engines (sales_engines/) and the kernel.
    This is the only layer that holds database sessions.

Architecture position:
    Dependency direction:
        sales_services/ -> sales_engines/  (allowed)
        sales_services/ -> sales_kernel/   (allowed)
        sales_engines/  -> sales_services/ (FORBIDDEN)
        sales_kernel/   -> sales_services/ (FORBIDDEN)
"""

from sales_services.quote_service import TradeQuote, quote_trade
from sales_services.reference_service import SaleReferenceService

__all__ = [
    "SaleReferenceService",
    "TradeQuote",
    "quote_trade",
]
