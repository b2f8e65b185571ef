"""Selectors for the retail kernel (read side)."""

from retail_kernel.selectors.base import BaseSelector
from retail_kernel.selectors.document_selector import DocumentSelector
from retail_kernel.selectors.sales_report_selector import SalesReportSelector

__all__ = [
    "BaseSelector",
    "DocumentSelector",
    "SalesReportSelector",
]
