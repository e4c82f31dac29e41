"""
Métriques Prometheus pour l'application.

Ce module définit les métriques du pipeline d'insights (cache, fournisseurs, étapes de repli)
et expose `/metrics`, plus un middleware optionnel de mesure HTTP.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Cache journalier
INSIGHT_CACHE_LOOKUPS = Counter(
    "insight_cache_lookups_total",
    "Daily insight cache lookups",
    ["feature", "result"],
)
INSIGHT_STORE_ERRORS = Counter(
    "insight_store_errors_total",
    "Insight store failures (corrupted entries, write errors)",
    ["backend", "op"],
)
INSIGHT_CACHE_SWEPT = Counter(
    "insight_cache_swept_total",
    "Stale insight cache entries removed by sweeps",
    ["backend"],
)

# Fournisseurs et étapes de repli
PROVIDER_CALLS = Counter(
    "provider_calls_total",
    "Provider generation calls",
    ["provider", "outcome"],
)
PROVIDER_LATENCY = Histogram(
    "provider_call_duration_seconds",
    "Latency of provider generation calls",
    ["provider"],
)
INSIGHT_RESOLUTIONS = Counter(
    "insight_resolutions_total",
    "Insight computations by resolving stage",
    ["feature", "source"],
)


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware Prometheus: comptage des requêtes et latence par route."""

    async def dispatch(self, request: Request, call_next):
        """Traite une requête HTTP et collecte les métriques."""
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = request.scope.get("path", "unknown")
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
