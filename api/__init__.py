"""REST API module for the tokenization service.

This module provides HTTP endpoints for:
- Users and their assets, transactions and portfolio
- Assets, compliance records and transactions
- Regulatory updates
- Marketplace browsing and portfolio metrics
- Server-side tokenization
- System health monitoring
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings_conf
from errors import field_errors
from ipfs import ContentStore, create_content_store
from ledger import TokenMinter, create_minter
from storage import Storage, create_storage
from storage.sample_data import seed_sample_data

# Configure logging
logging.basicConfig(
    level=settings_conf['log_level'],
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    storage: Optional[Storage] = None,
    settings: Optional[Dict[str, Any]] = None,
    content_store: Optional[ContentStore] = None,
    minter: Optional[TokenMinter] = None
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        storage: Store to serve from; built from settings when omitted
        settings: Validated settings, defaults to settings.conf
        content_store: Document/metadata store for tokenization
        minter: Token minter for tokenization

    Returns:
        Configured FastAPI app
    """
    settings = settings if settings is not None else settings_conf
    owns_storage = storage is None
    if owns_storage:
        storage = create_storage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle startup and shutdown events."""
        logger.info(f"Initializing API with {storage.backend_name} storage...")
        if owns_storage and settings.get('seed_sample_data'):
            app.state.seeded = await seed_sample_data(storage)

        yield

        logger.info("Shutting down API...")
        if owns_storage:
            await storage.close()

    app = FastAPI(
        title="Asset Tokenization API",
        description="REST API for tokenizing real-world assets",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.storage = storage
    app.state.settings = settings
    app.state.content_store = content_store or create_content_store(settings)
    app.state.minter = minter or create_minter(settings)
    app.state.call_timeout = settings.get('external_call_timeout', 30.0)
    app.state.started_at = time.monotonic()
    app.state.seeded = None

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get('cors_origins', ["*"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Render errors as {"message": ...}."""
        content = dict(exc.detail) if isinstance(exc.detail, dict) else {'message': exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content,
                            headers=getattr(exc, 'headers', None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={'message': "Invalid request", 'errors': field_errors(exc)}
        )

    # Import and include all routers
    from .assets import router as assets_router
    from .compliance import router as compliance_router
    from .marketplace import router as marketplace_router
    from .portfolio import router as portfolio_router
    from .regulatory import router as regulatory_router
    from .system import router as system_router
    from .tokenize import router as tokenize_router
    from .transactions import router as transactions_router
    from .users import router as users_router

    for router in (
        users_router,
        assets_router,
        compliance_router,
        transactions_router,
        regulatory_router,
        portfolio_router,
        marketplace_router,
        tokenize_router,
        system_router,
    ):
        app.include_router(router, prefix="/api")

    return app


app = create_app()

__all__ = ['app', 'create_app']
