"""
DocumentOrchestrator -- transactional workflow for billings and quotes.

Responsibility:
    Sequences customer resolution, document build, line-item persistence
    and inventory movements as one all-or-nothing unit of work:

        create:  validate -> resolve customer -> resolve shop -> serial
                 number -> header -> items (+ stock deduction for billings)
                 -> totals -> commit
        update:  lock document -> validate -> customer -> restore old
                 deductions -> replace items (+ deduct new) -> totals -> commit
        cancel:  lock billing -> guard status -> restore deductions -> commit
        delete:  delete header (items cascade) -> commit
        change_status: workflow-checked status transition -> commit

Architecture position:
    Kernel > Services.  The only service that commits or rolls back.
    Called by the HTTP layer and by scripts.

Invariants enforced:
    - A document is never persisted without line items.
    - Stored subtotal/total always match the totals formula applied to the
      stored items, discount and shipping.
    - Stock deducted by a billing is restored exactly once (cancel is
      guarded by the current status).
    - Any failure rolls back every write of the operation before the error
      propagates (when auto_commit is on).

Failure modes:
    - Domain errors (RetailKernelError subclasses) propagate unchanged.
    - IntegrityError from a unique constraint -> DuplicateResourceError.
    - Any other SQLAlchemyError -> StorageError.
    - Anything else is rolled back, logged and re-raised unchanged.
    Both translated errors chain the driver error as __cause__.
"""

import time
from collections.abc import Callable
from typing import TypeVar
from uuid import UUID
from uuid import uuid4 as _uuid4

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from retail_kernel.config import BackofficeConfig
from retail_kernel.db.types import quantize_storage, validate_currency
from retail_kernel.domain.clock import Clock, SystemClock
from retail_kernel.domain.dtos import DocumentInput, DocumentSummary, DocumentUpdate
from retail_kernel.domain.totals import DocumentTotals, build_totals, normalize_discount
from retail_kernel.domain.values import DocumentKind
from retail_kernel.domain.workflows import (
    WORKFLOWS,
    BillingStatus,
    initial_status,
    parse_status,
    require_transition,
)
from retail_kernel.exceptions import (
    DocumentAlreadyCanceledError,
    DocumentClosedError,
    DocumentNotFoundError,
    DuplicateResourceError,
    EmptyItemListError,
    RetailKernelError,
    StockItemNotFoundError,
    StorageError,
)
from retail_kernel.logging_config import LogContext, get_logger
from retail_kernel.models.billing import Billing
from retail_kernel.models.customer import Customer
from retail_kernel.models.quote import Quote
from retail_kernel.services.customer_service import CustomerService
from retail_kernel.services.inventory_ledger import InventoryLedger
from retail_kernel.services.line_item_store import LineItemStore
from retail_kernel.services.serial_number_service import SerialNumberService
from retail_kernel.services.shop_service import ShopService

logger = get_logger("services.document_orchestrator")

T = TypeVar("T")

_DOCUMENT_MODELS = {
    DocumentKind.BILLING: Billing,
    DocumentKind.QUOTE: Quote,
}

# Unique constraints a write can hit, by the names the drivers report them
# under (PostgreSQL: constraint name, SQLite: table.column).
_UNIQUE_CONSTRAINTS = (
    ("uq_person_dni", "persons.dni", "customer"),
    ("uq_customer_person", "customers.person_id", "customer"),
    ("uq_billing_serial_number", "billings.serial_number", "billing"),
    ("uq_quote_serial_number", "quotes.serial_number", "quote"),
    ("uq_stock_item_variant", "stock_items.stock_id", "stock item"),
)


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate key" in message


def _duplicate_error(exc: IntegrityError, default_resource: str) -> DuplicateResourceError:
    message = str(exc.orig)
    for constraint, column, resource in _UNIQUE_CONSTRAINTS:
        if constraint in message or column in message:
            return DuplicateResourceError(resource, constraint)
    return DuplicateResourceError(default_resource)


class DocumentOrchestrator:
    """
    Orchestrates document writes.

    By default every public operation commits on success and rolls back on
    failure.  Set auto_commit=False to leave transaction control to the
    caller (tests composing several operations in one transaction).
    """

    def __init__(
        self,
        session: Session,
        config: BackofficeConfig | None = None,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._config = config or BackofficeConfig.with_defaults()
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit

        self._ledger = InventoryLedger(session)
        self._customers = CustomerService(session)
        self._shops = ShopService(session)
        self._serials = SerialNumberService(session, self._config)
        self._items = {
            kind: LineItemStore(session, kind, self._ledger) for kind in DocumentKind
        }

    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        kind: DocumentKind,
        work: Callable[[], T],
        actor_id: UUID | None = None,
        **log_fields,
    ) -> T:
        correlation_id = str(_uuid4())
        with LogContext.bind(
            correlation_id=correlation_id,
            actor_id=str(actor_id) if actor_id else None,
            **log_fields,
        ):
            logger.info(f"{kind.value}_{operation}_started")
            t0 = time.monotonic()
            try:
                result = work()
                if self._auto_commit:
                    self._session.commit()
            except RetailKernelError as exc:
                self._rollback()
                logger.warning(
                    f"{kind.value}_{operation}_rejected",
                    extra={"error_code": exc.code, "error_kind": exc.kind.value},
                )
                raise
            except IntegrityError as exc:
                self._rollback()
                if _is_unique_violation(exc):
                    error = _duplicate_error(exc, kind.value)
                else:
                    error = StorageError(f"{kind.value}_{operation}", str(exc.orig))
                logger.warning(
                    f"{kind.value}_{operation}_rejected",
                    extra={"error_code": error.code, "error_kind": error.kind.value},
                )
                raise error from exc
            except SQLAlchemyError as exc:
                self._rollback()
                logger.error(f"{kind.value}_{operation}_failed", exc_info=True)
                raise StorageError(f"{kind.value}_{operation}", str(exc)) from exc
            except Exception:
                self._rollback()
                logger.error(f"{kind.value}_{operation}_failed", exc_info=True)
                raise

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info(
                f"{kind.value}_{operation}_completed",
                extra={"duration_ms": duration_ms},
            )
            return result

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()
            logger.debug("transaction_rolled_back")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_locked(self, kind: DocumentKind, document_id: UUID) -> Billing | Quote:
        model = _DOCUMENT_MODELS[kind]
        document = self._session.execute(
            select(model)
            .where(model.id == document_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(kind.value, str(document_id))
        return document

    def _summary(self, kind: DocumentKind, document: Billing | Quote) -> DocumentSummary:
        customer_name = None
        if document.customer_id is not None:
            customer = self._session.get(Customer, document.customer_id)
            customer_name = customer.person.full_name if customer else None
        return DocumentSummary.from_model(kind, document, customer_name)

    def _validated_totals(self, kind: DocumentKind, data: DocumentInput | DocumentUpdate):
        if not data.items:
            raise EmptyItemListError(kind.value)
        line_totals = self._items[kind].validate(data.items)
        discount_type, discount = normalize_discount(data.discount_type, data.discount)
        totals = build_totals(
            line_totals, discount_type, discount, data.shipping, expected_total=data.total
        )
        return discount_type, discount, totals

    @staticmethod
    def _apply_totals(
        document: Billing | Quote,
        discount_type,
        discount,
        totals: DocumentTotals,
    ) -> None:
        document.discount_type = discount_type.value if discount_type else None
        document.discount = discount
        document.shipping = totals.shipping
        document.subtotal = quantize_storage(totals.subtotal)
        document.total = quantize_storage(totals.total)

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create(
        self,
        kind: DocumentKind,
        data: DocumentInput,
        actor_id: UUID | None = None,
    ) -> DocumentSummary:
        """
        Create a billing or a quote with its items.

        Billings take each item's quantity out of their stock when
        data.deduct_stock is set (the default); quotes never touch stock.

        Raises:
            EmptyItemListError, InvalidQuantityError, InvalidPriceError,
            InvalidDiscountError, InvalidShippingError, TotalMismatchError,
            LineTotalMismatchError, InvalidStatusTransitionError,
            CustomerNotFoundError, ShopNotFoundError,
            ProductVariantNotFoundError, StockItemNotFoundError,
            InsufficientStockError, SerialNumberExhaustedError,
            DuplicateResourceError, StorageError
        """
        return self._run(
            "create",
            kind,
            lambda: self._do_create(kind, data, actor_id),
            actor_id=actor_id,
            shop_slug=data.shop_slug,
        )

    def create_billing(self, data: DocumentInput, actor_id: UUID | None = None) -> DocumentSummary:
        return self.create(DocumentKind.BILLING, data, actor_id)

    def create_quote(self, data: DocumentInput, actor_id: UUID | None = None) -> DocumentSummary:
        return self.create(DocumentKind.QUOTE, data, actor_id)

    def _do_create(
        self,
        kind: DocumentKind,
        data: DocumentInput,
        actor_id: UUID | None,
    ) -> DocumentSummary:
        discount_type, discount, totals = self._validated_totals(kind, data)
        status = initial_status(kind, data.status)

        customer_id = self._customers.resolve(data.customer_id, data.customer, actor_id)
        shop = self._shops.get_by_slug(data.shop_slug)
        currency = validate_currency(shop.currency)

        now = self._clock.now()
        serial_number = self._serials.next_serial(kind, now.date())
        with LogContext.bind(serial_number=serial_number):
            header = dict(
                serial_number=serial_number,
                status=status,
                currency=currency,
                shop_id=shop.id,
                customer_id=customer_id,
                created_at=now,
                updated_at=now,
                created_by_id=actor_id,
            )

            deduct = False
            stock_id = None
            if kind is DocumentKind.BILLING:
                stock_id = data.stock_id or shop.default_stock_id
                deduct = data.deduct_stock
                if deduct and stock_id is None:
                    raise StockItemNotFoundError(str(data.items[0].product_variant_id), "(no stock)")
                document = Billing(
                    **header,
                    stock_id=stock_id,
                    stock_deducted=deduct,
                    effective_date=data.effective_date or now.date(),
                    payment_method=data.payment_method,
                )
            else:
                document = Quote(**header)

            self._apply_totals(document, discount_type, discount, totals)
            self._session.add(document)
            self._session.flush()

            self._items[kind].create_all(document, data.items, deduct, stock_id, actor_id)
            self._session.flush()

            logger.info(
                "document_created",
                extra={
                    "document_kind": kind.value,
                    "document_id": str(document.id),
                    "serial_number": serial_number,
                    "item_count": len(data.items),
                    "total": document.total,
                    "stock_deducted": deduct,
                },
            )
            return self._summary(kind, document)

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    def update(
        self,
        kind: DocumentKind,
        document_id: UUID,
        data: DocumentUpdate,
        actor_id: UUID | None = None,
    ) -> DocumentSummary:
        """
        Replace a document's header values and item list.

        A billing that deducted stock gets its previous items restored and
        its new items deducted, in the same transaction.

        Raises:
            DocumentNotFoundError, DocumentClosedError, EmptyItemListError,
            CustomerNotFoundError, StockItemNotFoundError,
            InsufficientStockError and the validation errors of create().
        """
        return self._run(
            "update",
            kind,
            lambda: self._do_update(kind, document_id, data, actor_id),
            actor_id=actor_id,
            document_id=str(document_id),
        )

    def _do_update(
        self,
        kind: DocumentKind,
        document_id: UUID,
        data: DocumentUpdate,
        actor_id: UUID | None,
    ) -> DocumentSummary:
        if not data.items:
            raise EmptyItemListError(kind.value)
        document = self._get_locked(kind, document_id)
        if WORKFLOWS[kind].is_terminal(document.status):
            raise DocumentClosedError(str(document.id), document.status)

        discount_type, discount, totals = self._validated_totals(kind, data)

        if data.customer is not None or data.customer_id is not None:
            document.customer_id = self._customers.resolve(data.customer_id, data.customer, actor_id)

        store = self._items[kind]
        deduct = False
        stock_id = None
        if kind is DocumentKind.BILLING:
            deduct = document.stock_deducted
            stock_id = document.stock_id
            if data.effective_date is not None:
                document.effective_date = data.effective_date
            if data.payment_method is not None:
                document.payment_method = data.payment_method

        with LogContext.bind(serial_number=document.serial_number):
            if deduct:
                store.restore_items(document, stock_id, actor_id)
            store.update_items(document, data.items, deduct, stock_id, actor_id)

        self._apply_totals(document, discount_type, discount, totals)
        document.updated_at = self._clock.now()
        document.updated_by_id = actor_id
        self._session.flush()

        logger.info(
            "document_updated",
            extra={
                "document_kind": kind.value,
                "document_id": str(document.id),
                "item_count": len(data.items),
                "total": document.total,
            },
        )
        return self._summary(kind, document)

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def delete(self, kind: DocumentKind, document_id: UUID) -> None:
        """
        Delete a document and (by cascade) its items.

        Stock is not touched; cancel a billing first to restore it.

        Raises:
            DocumentNotFoundError: no row matched.
        """

        def work() -> None:
            model = _DOCUMENT_MODELS[kind]
            result = self._session.execute(delete(model).where(model.id == document_id))
            if result.rowcount == 0:
                raise DocumentNotFoundError(kind.value, str(document_id))
            logger.info(
                "document_deleted",
                extra={"document_kind": kind.value, "document_id": str(document_id)},
            )

        self._run("delete", kind, work, document_id=str(document_id))

    # -------------------------------------------------------------------------
    # Cancel / status
    # -------------------------------------------------------------------------

    def cancel_billing(self, document_id: UUID, actor_id: UUID | None = None) -> DocumentSummary:
        """
        Cancel a billing and put its deducted quantities back into stock.

        Raises:
            DocumentNotFoundError
            DocumentAlreadyCanceledError: the billing is already canceled;
                nothing is restocked.
            StockItemNotFoundError: a stock item vanished since the sale.
        """
        return self._run(
            "cancel",
            DocumentKind.BILLING,
            lambda: self._do_cancel(document_id, actor_id),
            actor_id=actor_id,
            document_id=str(document_id),
        )

    def _do_cancel(self, document_id: UUID, actor_id: UUID | None) -> DocumentSummary:
        document = self._get_locked(DocumentKind.BILLING, document_id)
        if document.status == BillingStatus.CANCELED.value:
            raise DocumentAlreadyCanceledError(str(document.id))
        require_transition(DocumentKind.BILLING, document.status, BillingStatus.CANCELED.value)

        if document.stock_deducted:
            with LogContext.bind(serial_number=document.serial_number):
                self._items[DocumentKind.BILLING].restore_items(document, document.stock_id, actor_id)

        previous = document.status
        document.status = BillingStatus.CANCELED.value
        document.updated_at = self._clock.now()
        document.updated_by_id = actor_id
        self._session.flush()

        logger.info(
            "billing_canceled",
            extra={
                "document_id": str(document.id),
                "from_status": previous,
                "restocked": document.stock_deducted,
                "item_count": len(document.items),
            },
        )
        return self._summary(DocumentKind.BILLING, document)

    def change_status(
        self,
        kind: DocumentKind,
        document_id: UUID,
        status: str,
        actor_id: UUID | None = None,
    ) -> DocumentSummary:
        """
        Move a document to another status of its workflow.

        Canceling a billing goes through cancel_billing() so stock is
        restored.

        Raises:
            DocumentNotFoundError, InvalidStatusTransitionError,
            DocumentAlreadyCanceledError
        """
        target = parse_status(kind, status)
        if kind is DocumentKind.BILLING and target == BillingStatus.CANCELED.value:
            return self.cancel_billing(document_id, actor_id)

        def work() -> DocumentSummary:
            document = self._get_locked(kind, document_id)
            require_transition(kind, document.status, target)
            previous = document.status
            document.status = target
            document.updated_at = self._clock.now()
            document.updated_by_id = actor_id
            self._session.flush()
            logger.info(
                "document_status_changed",
                extra={
                    "document_kind": kind.value,
                    "document_id": str(document.id),
                    "from_status": previous,
                    "to_status": target,
                },
            )
            return self._summary(kind, document)

        return self._run(
            "status_change", kind, work, actor_id=actor_id, document_id=str(document_id)
        )
