"""
LineItemStore -- persistence of billing and quote line items.

Responsibility:
    Creates line items for a document, snapshotting the product variant's
    display name, and (for billings that deduct stock) takes each item's
    quantity out of the document's stock through the InventoryLedger.
    Updates replace the whole item set: the stored items are deleted and
    the supplied list is inserted again, so item ids do not survive an
    edit.

Architecture position:
    Kernel > Services.  Called by DocumentOrchestrator only.

Invariants enforced:
    - quantity > 0, price >= 0 and total_price == quantity x price for
      every stored item (validated before any write).
    - Deduction and insertion of an item happen in the same transaction.

Failure modes:
    - ProductVariantNotFoundError, InvalidQuantityError, InvalidPriceError,
      LineTotalMismatchError, plus the InventoryLedger's errors.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.orm import Session

from retail_kernel.db.types import quantize_storage, to_decimal
from retail_kernel.domain.dtos import LineItemInput
from retail_kernel.domain.totals import validate_line
from retail_kernel.domain.values import DocumentKind
from retail_kernel.exceptions import ProductVariantNotFoundError
from retail_kernel.logging_config import get_logger
from retail_kernel.models.billing import Billing, BillingItem
from retail_kernel.models.catalog import ProductVariant
from retail_kernel.models.quote import Quote, QuoteItem
from retail_kernel.services.base import BaseService
from retail_kernel.services.inventory_ledger import InventoryLedger

logger = get_logger("services.line_item_store")


class LineItemStore(BaseService):
    """Line items of one document kind."""

    def __init__(
        self,
        session: Session,
        kind: DocumentKind,
        ledger: InventoryLedger | None = None,
    ):
        super().__init__(session)
        self.kind = kind
        self._ledger = ledger or InventoryLedger(session)
        if kind is DocumentKind.BILLING:
            self._item_model = BillingItem
            self._owner_column = BillingItem.billing_id
        else:
            self._item_model = QuoteItem
            self._owner_column = QuoteItem.quote_id

    def _snapshot_name(self, item: LineItemInput) -> str:
        variant = self.session.get(ProductVariant, item.product_variant_id)
        if variant is None:
            raise ProductVariantNotFoundError(str(item.product_variant_id))
        return item.name or variant.display_name

    def validate(self, items: tuple[LineItemInput, ...]) -> list[Decimal]:
        """Check every item before anything is written; return the line totals."""
        return [
            validate_line(i.product_variant_id, i.quantity, i.price, i.total_price)
            for i in items
        ]

    def create(
        self,
        document: Billing | Quote,
        item: LineItemInput,
        position: int,
        deduct: bool = False,
        stock_id: UUID | None = None,
        actor_id: UUID | None = None,
    ):
        """
        Persist one line item on document.

        With deduct set, the item's quantity is taken out of stock_id.
        """
        total = validate_line(item.product_variant_id, item.quantity, item.price, item.total_price)
        values = dict(
            position=position,
            product_variant_id=item.product_variant_id,
            name=self._snapshot_name(item),
            quantity=to_decimal(item.quantity),
            price=to_decimal(item.price),
            total_price=quantize_storage(total),
        )
        if self.kind is DocumentKind.BILLING:
            values["currency"] = document.currency
        record = self._item_model(**values)
        document.items.append(record)
        self.session.flush()

        if deduct:
            self._ledger.deduct(item.product_variant_id, stock_id, record.quantity, actor_id)
        return record

    def create_all(
        self,
        document: Billing | Quote,
        items: tuple[LineItemInput, ...],
        deduct: bool = False,
        stock_id: UUID | None = None,
        actor_id: UUID | None = None,
    ) -> list:
        return [
            self.create(document, item, position, deduct, stock_id, actor_id)
            for position, item in enumerate(items)
        ]

    def update_items(
        self,
        document: Billing | Quote,
        items: tuple[LineItemInput, ...],
        deduct: bool = False,
        stock_id: UUID | None = None,
        actor_id: UUID | None = None,
    ) -> list:
        """
        Replace the document's items with items.

        Stock is not restored here; callers that deducted for the old items
        call restore_items() first.
        """
        result = self.session.execute(
            delete(self._item_model).where(self._owner_column == document.id)
        )
        self.session.expire(document, ["items"])
        logger.debug(
            "line_items_replaced",
            extra={
                "document_id": str(document.id),
                "removed": result.rowcount,
                "inserted": len(items),
            },
        )
        return self.create_all(document, items, deduct, stock_id, actor_id)

    def restore_items(
        self,
        document: Billing,
        stock_id: UUID,
        actor_id: UUID | None = None,
    ) -> None:
        """Put every item's quantity back into stock_id."""
        for record in document.items:
            self._ledger.restore(record.product_variant_id, stock_id, record.quantity, actor_id)
