"""
FastAPI application for the ServiceHub marketplace.

``create_app`` wires routers and middleware and registers a lifespan
that opens the database once at startup, builds every store and engine
around that handle, and closes it again on shutdown.  The module-level
``app`` is what uvicorn serves::

    uvicorn servicehub.main:app
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from servicehub.config import Settings
from servicehub.container import build_services
from servicehub.logging_config import setup_logging
from servicehub.routers import auth, bookings, geo, providers, users


def create_app(
    settings: Optional[Settings] = None,
    geocoder_transport: Optional[httpx.BaseTransport] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = build_services(settings, geocoder_transport=geocoder_transport)
        app.state.services = services
        try:
            yield
        finally:
            services.close()

    app = FastAPI(title=settings.project_name, version=settings.api_version, lifespan=lifespan)

    allow_any_origin = settings.cors_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        # Browsers reject wildcard CORS with credentials enabled.
        allow_credentials=not allow_any_origin,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.trusted_hosts != ["*"]:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(providers.router)
    app.include_router(bookings.router)
    app.include_router(geo.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
