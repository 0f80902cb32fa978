"""
Shielded Pool Service - Main Application
========================================

FastAPI application for shielded deposits, withdrawals and swaps.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.pool.dependencies import get_pool
from services.pool.errors import ErrorCode, PoolError
from services.pool.routes import policy, transactions, tree
from shared.config import settings
from shared.logging import clear_context, get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="shielded-pool",
)

logger = get_logger(__name__)

ERROR_STATUS = {
    ErrorCode.DOUBLE_SPEND: status.HTTP_409_CONFLICT,
    ErrorCode.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_INITIALIZED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "pool_service_starting",
        environment=settings.environment.value,
        port=settings.port,
        ledger_mode=settings.ledger.mode.value,
    )

    # Startup
    try:
        pool = get_pool()
        logger.info(
            "ledger_connected",
            mode=settings.ledger.mode.value,
            program_id=pool.program_id,
        )
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("pool_service_shutting_down")


# Create FastAPI application
app = FastAPI(
    title="Shielded Pool Service",
    description="Proof verification and settlement for shielded deposits, withdrawals and swaps",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def reset_log_context(request: Request, call_next: Any) -> Any:
    """Start every request with an empty log context."""
    clear_context()
    return await call_next(request)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its dependencies.
    """
    pool = get_pool()
    components: dict[str, dict[str, Any]] = {}

    components["nullifier_registry"] = await pool.registry.health_check()

    if pool.initialized:
        account = pool.tree_account()
        components["commitment_tree"] = {
            "status": "healthy",
            "next_index": account.next_index,
            "capacity": 2**account.height,
        }
    else:
        components["commitment_tree"] = {"status": "uninitialized"}

    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="shielded-pool",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Shielded Pool Service",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    transactions.router,
    prefix="/api/v1/transactions",
    tags=["Transactions"],
)

app.include_router(
    tree.router,
    prefix="/api/v1/tree",
    tags=["Commitment Tree"],
)

app.include_router(
    policy.router,
    prefix="/api/v1/policy",
    tags=["Policy"],
)


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(PoolError)
async def pool_error_handler(request: Request, exc: PoolError) -> JSONResponse:
    """Render pool rejections with their error code."""
    status_code = ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
    logger.warning(
        "transaction_rejected",
        error_code=exc.code.value,
        error=exc.message,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=exc.message, error_code=exc.code.value).model_dump(
            mode="json"
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code,
        },
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "status_code": 500,
        },
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.pool.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
