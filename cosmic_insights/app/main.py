"""
Application principale FastAPI.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, métriques) et les handlers d'erreurs
- Monter les routers (santé, insights, métriques)
"""

from __future__ import annotations

from uuid import uuid4

from fastapi import FastAPI, Request

from cosmic_insights.api.errors import install_error_handlers
from cosmic_insights.api.routes_health import router as health_router
from cosmic_insights.api.routes_insights import router as insights_router
from cosmic_insights.app.metrics import PrometheusMiddleware, metrics_router
from cosmic_insights.core.container import container
from cosmic_insights.core.logging import setup_logging


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog) au niveau `LOG_LEVEL`
    - Ajoute l'identifiant de requête et la mesure Prometheus
    - Publie les routes de santé, d'insights et de métriques
    """
    settings = container.settings
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(PrometheusMiddleware)

    @app.middleware("http")
    async def request_id(request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or str(uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    install_error_handlers(app)
    app.include_router(health_router)
    app.include_router(insights_router)
    app.include_router(metrics_router)
    return app


app = create_app()
