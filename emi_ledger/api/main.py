"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from emi_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from emi_ledger.api.v1 import analytics, customers, payments
from emi_ledger.config import Settings, settings as default_settings
from emi_ledger.infrastructure.database.session import Database
from emi_ledger.infrastructure.observability.logging import setup_logging


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    A database handle passed in is opened if needed but left to the caller to
    close; otherwise one is built from settings and closed at shutdown.
    """
    settings = settings or default_settings
    owns_database = database is None
    database = database or Database.from_settings(settings)

    # Setup structured logging
    setup_logging(settings.log_level, settings.service_name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.open()
        if settings.auto_create_schema:
            database.create_schema()
        if database.ping():
            logging.info("Connected to database")
        yield
        if owns_database:
            database.close()

    app = FastAPI(
        title="EMI Ledger",
        description="EMI payment recording, due balances and collection analytics",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(customers.router, prefix="/v1", tags=["customers"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(analytics.router, prefix="/v1", tags=["analytics"])

    return app


app = create_app()
