# FastAPI entrypoint with all necessary routes and middleware
#
# Run with:
#     uvicorn apps.api.main:create_app --factory

from contextlib import asynccontextmanager
from typing import Optional

import dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from auth.security_middleware import RequestAuditMiddleware, SecurityHeadersMiddleware
from auth.session import AuthConfig
from commerce.commerce_routes import config_router, orders_router, products_router
from tenancy.config import TenancyConfig
from tenancy.database import DatabaseConfig, DatabaseManager
from tenancy.errors import TenancyError, tenancy_error_handler
from tenancy.tenancy_routes import admin_router
from tenancy.tenancy_routes import router as stores_router

dotenv.load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logger.info("Disposing tenancy database engine")
    app.state.db_manager.dispose()


def create_app(
    tenancy_config: Optional[TenancyConfig] = None,
    auth_config: Optional[AuthConfig] = None,
    db_manager: Optional[DatabaseManager] = None,
) -> FastAPI:
    """
    Build the API application.

    The database manager and configs are owned by the app and reached by
    dependencies through app.state. Tests pass their own instances.
    """
    tenancy_config = tenancy_config or TenancyConfig()
    auth_config = auth_config or AuthConfig()
    db_manager = db_manager or DatabaseManager(DatabaseConfig())
    db_manager.create_tables()

    app = FastAPI(
        title="Store Tenancy Gateway",
        description="Tenant-scoped commerce API with store id translation",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.tenancy_config = tenancy_config
    app.state.auth_config = auth_config
    app.state.db_manager = db_manager

    # ==================== MIDDLEWARE STACK ====================

    app.add_middleware(RequestAuditMiddleware, store_id_header=tenancy_config.store_id_header)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=tenancy_config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "Authorization",
            "Accept",
            "Origin",
            tenancy_config.store_id_header,
        ],
        expose_headers=["X-Request-ID"],
        max_age=86400,
    )

    app.add_exception_handler(TenancyError, tenancy_error_handler)

    # ==================== ROUTER REGISTRATION ====================

    app.include_router(stores_router)       # /api/stores
    app.include_router(admin_router)        # /api/admin
    app.include_router(products_router)     # /api/products
    app.include_router(orders_router)       # /api/orders
    app.include_router(config_router)       # /api/store/config

    @app.get("/health")
    def health_check(request: Request):
        """Health check endpoint for monitoring system status."""
        database_ok = request.app.state.db_manager.health_check()
        return {
            "status": "healthy" if database_ok else "unhealthy",
            "components": {"database": "ok" if database_ok else "unavailable"},
        }

    logger.info(
        f"API ready: store header={tenancy_config.store_id_header}, "
        f"peer prefix={tenancy_config.peer_id_prefix}"
    )
    return app
