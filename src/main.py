"""Invoicing CRM FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from src.core.audit.router import router as audit_router
from src.core.company.router import router as company_router
from src.core.config import settings
from src.core.documents.router import router as numbering_router
from src.core.exceptions import AppException
from src.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    sqlalchemy_db_error_handler,
    validation_exception_handler,
)
from src.modules.clients.router import router as clients_router
from src.modules.invoices.router import router as invoices_router
from src.modules.providers.router import router as providers_router
from src.modules.purchases.router import router as purchases_router
from src.modules.quotes.router import router as quotes_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Invoicing CRM (env=%s)", settings.app_env)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Invoicing CRM",
        description="Quotes, invoices and purchase invoices with sequential numbering",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_db_error_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(company_router, prefix="/api/v1")
    app.include_router(numbering_router, prefix="/api/v1")
    app.include_router(audit_router, prefix="/api/v1")
    app.include_router(clients_router, prefix="/api/v1")
    app.include_router(providers_router, prefix="/api/v1")
    app.include_router(quotes_router, prefix="/api/v1")
    app.include_router(invoices_router, prefix="/api/v1")
    app.include_router(purchases_router, prefix="/api/v1")

    return app


app = create_app()
