"""Back-office FastAPI application factory.

The app does not build its own store handle: a ``Database`` is constructed
by the caller (``python -m retail_api``, a test fixture) and injected.

Usage:
    database = Database(BackofficeConfig.from_env(os.environ))
    app = create_app(database)
"""

from uuid import uuid4

from fastapi import FastAPI, Request

from retail_api.errors import register_exception_handlers
from retail_api.routes import billing_router, dashboard_router, health_router, quote_router
from retail_kernel.config import BackofficeConfig
from retail_kernel.db.engine import Database
from retail_kernel.domain.clock import Clock, SystemClock
from retail_kernel.logging_config import LogContext, get_logger

logger = get_logger("api.app")

API_PREFIX = "/api/v1"


def create_app(
    database: Database,
    config: BackofficeConfig | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Retail Back Office API",
        description="Quotes, billings, stock deduction and sales reports",
    )
    app.state.database = database
    app.state.config = config or database.config
    app.state.clock = clock or SystemClock()

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Bind the request id and requesting actor into the log context; echo the id back."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        with LogContext.bind(request_id=request_id, actor_id=request.headers.get("X-Requested-By")):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)

    app.include_router(quote_router, prefix=API_PREFIX)
    app.include_router(billing_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)
    app.include_router(health_router, prefix=API_PREFIX)

    logger.info("api_created", extra={"prefix": API_PREFIX, "route_count": len(app.routes)})
    return app
