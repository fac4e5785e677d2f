"""FastAPI application entry point"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text
import logging

from propledger.config import Settings, settings as default_settings
from propledger.database import Database
from propledger.exceptions import AppException
from propledger.routers import (
    auth_router,
    properties_router,
    transactions_router,
    dashboard_router,
)
from propledger.services.ledger import BlockchainLedger, build_ledger

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    config: Settings = app.state.settings

    # Startup
    logger.info(f"Starting {config.APP_NAME} v{config.APP_VERSION}")
    await app.state.database.create_all()
    logger.info(f"Database initialized; ledger network: {app.state.ledger.network}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.database.dispose()
    logger.info("Database connections closed")


async def app_exception_handler(request: Request, exc: AppException):
    """Handle custom application exceptions"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "details": exc.details,
            "path": str(request.url.path)
        }
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies and parameters as 400"""
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Validation failed",
            "details": {"errors": jsonable_encoder(exc.errors())},
            "path": str(request.url.path)
        }
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions without leaking internals"""
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
    return PlainTextResponse("Server Error", status_code=500)


def create_app(
    config: Settings = None,
    ledger: BlockchainLedger = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings to use; defaults to the environment-loaded settings
        ledger: Ledger collaborator; defaults to the one named by LEDGER_NETWORK

    The database handle and ledger live on ``app.state`` and reach request
    handlers through the ``get_db`` and ``get_ledger`` dependencies.
    """
    config = config or default_settings

    app = FastAPI(
        title=config.APP_NAME,
        version=config.APP_VERSION,
        description="Property listing and sale transaction API",
        docs_url="/api/docs" if config.DEBUG else None,
        redoc_url="/api/redoc" if config.DEBUG else None,
        openapi_url="/api/openapi.json" if config.DEBUG else None,
        lifespan=lifespan
    )

    app.state.settings = config
    app.state.database = Database(config.DATABASE_URL, echo=config.DATABASE_ECHO)
    app.state.ledger = ledger or build_ledger(config.LEDGER_NETWORK)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers
    app.include_router(auth_router, prefix=config.API_PREFIX)
    app.include_router(properties_router, prefix=config.API_PREFIX)
    app.include_router(transactions_router, prefix=config.API_PREFIX)
    app.include_router(dashboard_router, prefix=config.API_PREFIX)

    @app.get("/health")
    async def health_check():
        """Health check endpoint - verifies app is running"""
        return {
            "status": "healthy",
            "app": config.APP_NAME,
            "version": config.APP_VERSION
        }

    @app.get("/health/ready")
    async def readiness_check():
        """Readiness check - verifies database connectivity"""
        try:
            async with app.state.database.session_maker() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Readiness check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "not_ready",
                    "database": "disconnected"
                }
            )
        return {
            "status": "ready",
            "database": "connected",
            "app": config.APP_NAME,
            "version": config.APP_VERSION
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "propledger.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.DEBUG
    )
