"""
Pure domain layer.

Totals arithmetic, document workflows, the injectable clock and the DTOs
that cross the kernel boundary.  Nothing here opens a session.
"""

from retail_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from retail_kernel.domain.dtos import (
    CustomerInfo,
    CustomerInput,
    DocumentDetail,
    DocumentInput,
    DocumentSummary,
    DocumentUpdate,
    LineItemInput,
    LineItemRecord,
    MonthlySales,
    ShopInfo,
    StockItemInfo,
    TopSalesGroup,
    TopSalesReport,
)
from retail_kernel.domain.totals import DocumentTotals, build_totals, compute_totals
from retail_kernel.domain.values import DiscountType, DocumentKind, StockOperation
from retail_kernel.domain.workflows import (
    BILLING_WORKFLOW,
    QUOTE_WORKFLOW,
    BillingStatus,
    QuoteStatus,
    Transition,
    Workflow,
)

__all__ = [
    "BILLING_WORKFLOW",
    "BillingStatus",
    "Clock",
    "CustomerInfo",
    "CustomerInput",
    "DeterministicClock",
    "DiscountType",
    "DocumentDetail",
    "DocumentInput",
    "DocumentKind",
    "DocumentSummary",
    "DocumentTotals",
    "DocumentUpdate",
    "LineItemInput",
    "LineItemRecord",
    "MonthlySales",
    "QUOTE_WORKFLOW",
    "QuoteStatus",
    "ShopInfo",
    "StockItemInfo",
    "StockOperation",
    "SystemClock",
    "TopSalesGroup",
    "TopSalesReport",
    "Transition",
    "Workflow",
    "build_totals",
    "compute_totals",
]
