"""FastAPI routes for billings, quotes, dashboard reports and health.

Handlers are plain ``def`` functions: the kernel is synchronous, so FastAPI
runs each request in its threadpool with its own session.
"""

from collections.abc import Generator
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from retail_api.schemas import (
    DocumentCreateRequest,
    DocumentDetailResponse,
    DocumentEnvelope,
    DocumentSummaryResponse,
    DocumentUpdateRequest,
    MessageResponse,
    MonthlySalesResponse,
    PingResponse,
    StatusChangeRequest,
    TopSalesResponse,
)
from retail_kernel.config import BackofficeConfig
from retail_kernel.domain.clock import Clock
from retail_kernel.domain.values import DocumentKind
from retail_kernel.exceptions import StorageError
from retail_kernel.selectors.document_selector import DocumentSelector
from retail_kernel.selectors.sales_report_selector import SalesReportSelector
from retail_kernel.services.document_orchestrator import DocumentOrchestrator


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_session(request: Request) -> Generator[Session, None, None]:
    session = request.app.state.database.session()
    try:
        yield session
    finally:
        session.close()


def get_config(request: Request) -> BackofficeConfig:
    return request.app.state.config


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_actor_id(x_requested_by: UUID | None = Header(default=None)) -> UUID | None:
    return x_requested_by


def get_orchestrator(
    session: Session = Depends(get_session),
    config: BackofficeConfig = Depends(get_config),
    clock: Clock = Depends(get_clock),
) -> DocumentOrchestrator:
    return DocumentOrchestrator(session, config=config, clock=clock)


# ---------------------------------------------------------------------------
# Document routers (one per kind, same shape)
# ---------------------------------------------------------------------------
def build_document_router(kind: DocumentKind, prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[kind.value])

    @router.post("", status_code=201, response_model=DocumentEnvelope)
    def create_document(
        body: DocumentCreateRequest,
        orchestrator: DocumentOrchestrator = Depends(get_orchestrator),
        actor_id: UUID | None = Depends(get_actor_id),
    ) -> DocumentEnvelope:
        summary = orchestrator.create(kind, body.to_input(), actor_id=actor_id)
        return DocumentEnvelope(document=DocumentSummaryResponse.from_summary(summary))

    @router.get("", response_model=list[DocumentSummaryResponse])
    def list_documents(
        shop: str,
        session: Session = Depends(get_session),
    ) -> list[DocumentSummaryResponse]:
        summaries = DocumentSelector(session).list_for_shop(kind, shop)
        return [DocumentSummaryResponse.from_summary(s) for s in summaries]

    @router.get("/{serial_number}", response_model=DocumentDetailResponse)
    def get_document(
        serial_number: str,
        session: Session = Depends(get_session),
    ) -> DocumentDetailResponse:
        detail = DocumentSelector(session).get_by_serial(kind, serial_number)
        return DocumentDetailResponse.from_detail(detail)

    @router.put("/{document_id}", response_model=DocumentSummaryResponse)
    def update_document(
        document_id: UUID,
        body: DocumentUpdateRequest,
        orchestrator: DocumentOrchestrator = Depends(get_orchestrator),
        actor_id: UUID | None = Depends(get_actor_id),
    ) -> DocumentSummaryResponse:
        summary = orchestrator.update(kind, document_id, body.to_update(), actor_id=actor_id)
        return DocumentSummaryResponse.from_summary(summary)

    @router.patch("/{document_id}/status", response_model=DocumentSummaryResponse)
    def change_document_status(
        document_id: UUID,
        body: StatusChangeRequest,
        orchestrator: DocumentOrchestrator = Depends(get_orchestrator),
        actor_id: UUID | None = Depends(get_actor_id),
    ) -> DocumentSummaryResponse:
        summary = orchestrator.change_status(kind, document_id, body.status, actor_id=actor_id)
        return DocumentSummaryResponse.from_summary(summary)

    @router.delete("/{document_id}", response_model=MessageResponse)
    def delete_document(
        document_id: UUID,
        orchestrator: DocumentOrchestrator = Depends(get_orchestrator),
    ) -> MessageResponse:
        orchestrator.delete(kind, document_id)
        return MessageResponse(message=f"{kind.value.capitalize()} deleted")

    return router


quote_router = build_document_router(DocumentKind.QUOTE, "/quotes")
billing_router = build_document_router(DocumentKind.BILLING, "/billings")


@billing_router.post("/{document_id}/cancel", response_model=DocumentSummaryResponse)
def cancel_billing(
    document_id: UUID,
    orchestrator: DocumentOrchestrator = Depends(get_orchestrator),
    actor_id: UUID | None = Depends(get_actor_id),
) -> DocumentSummaryResponse:
    summary = orchestrator.cancel_billing(document_id, actor_id=actor_id)
    return DocumentSummaryResponse.from_summary(summary)


# ---------------------------------------------------------------------------
# Dashboard Router
# ---------------------------------------------------------------------------
dashboard_router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@dashboard_router.get("/monthly-sales", response_model=list[MonthlySalesResponse])
def monthly_sales(
    year: int | None = None,
    session: Session = Depends(get_session),
    config: BackofficeConfig = Depends(get_config),
    clock: Clock = Depends(get_clock),
) -> list[MonthlySalesResponse]:
    rows = SalesReportSelector(session, config, clock).monthly_sales(year)
    return [MonthlySalesResponse.from_row(r) for r in rows]


@dashboard_router.get("/top-sales", response_model=TopSalesResponse)
def top_sales(
    offset: int = 0,
    session: Session = Depends(get_session),
    config: BackofficeConfig = Depends(get_config),
    clock: Clock = Depends(get_clock),
) -> TopSalesResponse:
    report = SalesReportSelector(session, config, clock).top_selling_groups(offset)
    return TopSalesResponse.from_report(report)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
health_router = APIRouter(tags=["health"])


@health_router.get("/ping", response_model=PingResponse)
def ping(request: Request) -> PingResponse:
    try:
        request.app.state.database.ping()
    except SQLAlchemyError as exc:
        raise StorageError("ping", str(exc)) from exc
    return PingResponse()
