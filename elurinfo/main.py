"""
FastAPI application for ElurInfo.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from elurinfo import __version__
from elurinfo.bootstrap import create_cache, create_store
from elurinfo.cache.freshness import FreshnessCache
from elurinfo.config.settings import Settings, get_settings
from elurinfo.middleware.error_handler import error_handler_middleware, setup_error_handlers
from elurinfo.middleware.request_id import RequestIDMiddleware
from elurinfo.providers.manager import ProviderManager, create_provider_manager
from elurinfo.routers import avalanche, health, mountain, municipal, snow_science
from elurinfo.services.sweep_service import SweepService

logger = logging.getLogger("elurinfo.main")


def create_app(settings: Optional[Settings] = None, cache: Optional[FreshnessCache] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (global settings when None)
        cache: Prebuilt cache. When given, startup builds nothing and
               no sweep service runs.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.cache is not None:
            yield
            return

        if not settings.validate_provider_config():
            raise ValueError("FORECAST_PROVIDER=aemet requires AEMET_API_KEY")

        providers = create_provider_manager(settings)
        try:
            store = await create_store(settings)
        except Exception:
            await providers.close()
            raise
        app.state.providers = providers
        app.state.cache = create_cache(settings, store, providers)

        sweep_service = None
        if settings.sweep_enabled:
            sweep_service = SweepService(
                app.state.cache,
                interval_seconds=settings.sweep_interval_hours * 3600,
                initial_delay_seconds=settings.sweep_initial_delay_seconds,
            )
            await sweep_service.start()
        app.state.sweep_service = sweep_service

        logger.info(f"🚀 ElurInfo API {__version__} ready ({settings.forecast_provider} provider)")
        try:
            yield
        finally:
            if sweep_service is not None:
                await sweep_service.stop()
            await providers.close()
            await store.close()
            app.state.cache = None
            logger.info("👋 ElurInfo API stopped")

    app = FastAPI(
        title="ElurInfo API",
        description="Boletines de avalanchas y predicciones de montaña del Pirineo",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache = cache
    app.state.providers = cache.provider if cache is not None and isinstance(cache.provider, ProviderManager) else None
    app.state.sweep_service = None
    app.state.started_at = time.monotonic()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every request with its status and latency."""
        start_time = time.time()
        path = request.url.path
        method = request.method

        # Probes are too verbose
        skip_logging = path.startswith("/health")

        if not skip_logging:
            logger.info(f"🔔 {method} {path}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(f"💥 ERROR: {method} {path} - {e} - {process_time:.4f}s")
            raise

        process_time = time.time() - start_time
        status_code = response.status_code
        if status_code < 400:
            status_str = f"✅ {status_code}"
        elif status_code < 500:
            status_str = f"⚠️ {status_code}"
        else:
            status_str = f"❌ {status_code}"

        if not skip_logging:
            logger.info(f"🏁 {method} {path} - {status_str} - {process_time:.3f}s")
        return response

    app.middleware("http")(error_handler_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    setup_error_handlers(app)

    app.include_router(health.router)
    app.include_router(avalanche.router)
    app.include_router(mountain.router)
    app.include_router(municipal.router)
    app.include_router(snow_science.router)

    @app.get("/")
    async def root():
        return {
            "message": "Bienvenido a la API de ElurInfo",
            "version": __version__,
            "endpoints": ["/health", "/avalancha", "/montana", "/municipio", "/snow-science"],
        }

    return app


app = create_app()
