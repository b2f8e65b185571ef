"""Services for the retail kernel (write side)."""

from retail_kernel.services.customer_service import CustomerService
from retail_kernel.services.document_orchestrator import DocumentOrchestrator
from retail_kernel.services.inventory_ledger import InventoryLedger
from retail_kernel.services.line_item_store import LineItemStore
from retail_kernel.services.sequence_service import SequenceCounter, SequenceService
from retail_kernel.services.serial_number_service import SerialNumberService
from retail_kernel.services.shop_service import ShopService

__all__ = [
    "CustomerService",
    "DocumentOrchestrator",
    "InventoryLedger",
    "LineItemStore",
    "SequenceCounter",
    "SequenceService",
    "SerialNumberService",
    "ShopService",
]
