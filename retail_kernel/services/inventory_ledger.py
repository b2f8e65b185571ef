"""
InventoryLedger -- the single writer of stock-item quantities.

Responsibility:
    Applies signed quantity deltas to the stock item of a (product variant,
    stock) pair: negative for a sale, positive for a cancellation or
    restock.  Keeping every quantity write behind apply_delta() makes the
    sign of a movement the only place a direction error can occur.

Architecture position:
    Kernel > Services.  Called by LineItemStore (deduct / restore).  Never
    called for quotes.

Invariants enforced:
    - quantity never goes negative.  The row is read with
      ``SELECT ... FOR UPDATE`` so two transactions selling the last unit
      serialize on the row: the second one reads the already-decremented
      quantity and fails with InsufficientStockError.
    - Flush only; the caller's transaction decides commit or rollback.

Failure modes:
    - StockItemNotFoundError: no stock item for the pair.
    - InsufficientStockError: the delta would drive quantity below zero.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from retail_kernel.db.types import ZERO, to_decimal
from retail_kernel.domain.dtos import StockItemInfo
from retail_kernel.domain.values import StockOperation
from retail_kernel.exceptions import InsufficientStockError, StockItemNotFoundError
from retail_kernel.logging_config import get_logger
from retail_kernel.models.stock_item import StockItem
from retail_kernel.services.base import BaseService

logger = get_logger("services.inventory_ledger")


class InventoryLedger(BaseService):
    """
    Contract:
        apply_delta() locks, checks and writes one stock item row inside the
        caller's transaction and returns the post-movement snapshot.
    """

    def _locked_item(self, product_variant_id: UUID, stock_id: UUID) -> StockItem:
        item = self.session.execute(
            select(StockItem)
            .where(
                StockItem.product_variant_id == product_variant_id,
                StockItem.stock_id == stock_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if item is None:
            raise StockItemNotFoundError(str(product_variant_id), str(stock_id))
        return item

    def apply_delta(
        self,
        product_variant_id: UUID,
        stock_id: UUID,
        signed_quantity: Decimal,
        actor_id: UUID | None = None,
    ) -> StockItemInfo:
        """
        Add signed_quantity to the stock item's quantity.

        Raises:
            StockItemNotFoundError
            InsufficientStockError
        """
        delta = to_decimal(signed_quantity)
        item = self._locked_item(product_variant_id, stock_id)

        new_quantity = item.quantity + delta
        if new_quantity < ZERO:
            logger.warning(
                "stock_delta_rejected",
                extra={
                    "product_variant_id": str(product_variant_id),
                    "stock_id": str(stock_id),
                    "available": item.quantity,
                    "delta": delta,
                },
            )
            raise InsufficientStockError(
                str(product_variant_id), str(stock_id), str(item.quantity), str(-delta)
            )

        previous = item.quantity
        item.quantity = new_quantity
        if actor_id is not None:
            item.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "stock_delta_applied",
            extra={
                "product_variant_id": str(product_variant_id),
                "stock_id": str(stock_id),
                "operation": (StockOperation.ADD if delta >= ZERO else StockOperation.SUBTRACT).value,
                "previous_quantity": previous,
                "new_quantity": new_quantity,
            },
        )
        return StockItemInfo.from_model(item)

    def deduct(
        self, product_variant_id: UUID, stock_id: UUID, quantity: Decimal, actor_id: UUID | None = None
    ) -> StockItemInfo:
        """Take quantity out of stock (a sale)."""
        return self.apply_delta(product_variant_id, stock_id, -to_decimal(quantity), actor_id)

    def restore(
        self, product_variant_id: UUID, stock_id: UUID, quantity: Decimal, actor_id: UUID | None = None
    ) -> StockItemInfo:
        """Put quantity back into stock (a cancellation)."""
        return self.apply_delta(product_variant_id, stock_id, to_decimal(quantity), actor_id)

    def get(self, product_variant_id: UUID, stock_id: UUID) -> StockItemInfo:
        """Current snapshot without locking."""
        item = self.session.execute(
            select(StockItem).where(
                StockItem.product_variant_id == product_variant_id,
                StockItem.stock_id == stock_id,
            )
        ).scalar_one_or_none()
        if item is None:
            raise StockItemNotFoundError(str(product_variant_id), str(stock_id))
        return StockItemInfo.from_model(item)
