"""
Tests for InventoryLedger.

Covers:
- Deduction and restoration of stock-item quantities
- Rejection of deltas that would drive quantity negative
- Missing stock items
- Structured log events
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from retail_kernel.exceptions import InsufficientStockError, StockItemNotFoundError
from retail_kernel.services.inventory_ledger import InventoryLedger


class TestInventoryLedger:

    def test_deduct(self, session, seed, test_actor_id):
        ledger = InventoryLedger(session)
        info = ledger.deduct(seed.hammer_id, seed.stock_id, Decimal("3"), test_actor_id)
        assert info.quantity == Decimal("7")
        assert ledger.get(seed.hammer_id, seed.stock_id).quantity == Decimal("7")

    def test_restore(self, session, seed):
        ledger = InventoryLedger(session)
        ledger.deduct(seed.paint_id, seed.stock_id, Decimal("5"))
        info = ledger.restore(seed.paint_id, seed.stock_id, Decimal("5"))
        assert info.quantity == Decimal("20")

    def test_last_unit_can_be_sold(self, session, seed):
        info = InventoryLedger(session).deduct(seed.drill_id, seed.stock_id, Decimal("1"))
        assert info.quantity == Decimal("0")

    def test_oversell_rejected(self, session, seed):
        ledger = InventoryLedger(session)
        with pytest.raises(InsufficientStockError) as exc_info:
            ledger.deduct(seed.drill_id, seed.stock_id, Decimal("2"))

        assert exc_info.value.code == "INSUFFICIENT_STOCK"
        assert Decimal(exc_info.value.available) == Decimal("1")
        assert Decimal(exc_info.value.requested) == Decimal("2")
        assert ledger.get(seed.drill_id, seed.stock_id).quantity == Decimal("1")

    def test_fractional_quantities(self, session, seed):
        info = InventoryLedger(session).deduct(seed.paint_id, seed.stock_id, Decimal("0.25"))
        assert info.quantity == Decimal("19.75")

    def test_missing_stock_item(self, session, seed):
        with pytest.raises(StockItemNotFoundError) as exc_info:
            InventoryLedger(session).deduct(seed.unstocked_id, seed.stock_id, Decimal("1"))
        assert exc_info.value.product_variant_id == str(seed.unstocked_id)

    def test_stock_items_are_per_stock(self, session, seed):
        """The same variant in another stock is a different row."""
        ledger = InventoryLedger(session)
        ledger.deduct(seed.hammer_id, seed.usd_stock_id, Decimal("5"))
        assert ledger.get(seed.hammer_id, seed.stock_id).quantity == Decimal("10")
        with pytest.raises(StockItemNotFoundError):
            ledger.get(seed.hammer_id, uuid4())

    def test_movements_logged(self, session, seed, captured_logs):
        ledger = InventoryLedger(session)
        ledger.deduct(seed.hammer_id, seed.stock_id, Decimal("2"))
        with pytest.raises(InsufficientStockError):
            ledger.deduct(seed.drill_id, seed.stock_id, Decimal("5"))

        logs = captured_logs()
        applied = [r for r in logs if r["message"] == "stock_delta_applied"]
        assert applied[0]["operation"] == "SUBTRACT"
        assert Decimal(applied[0]["new_quantity"]) == Decimal("8")
        assert any(r["message"] == "stock_delta_rejected" for r in logs)
