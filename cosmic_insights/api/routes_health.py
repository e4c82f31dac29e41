"""
Endpoint de santé.

Expose `/health`: état général, backend de cache et fournisseurs configurés (sans les clés).
"""

from fastapi import APIRouter

from cosmic_insights.core.constants import PROVIDER_KEY_SLOTS
from cosmic_insights.core.container import container

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Vérifie la disponibilité de l'API, le backend de cache et les fournisseurs."""
    return {
        "status": "ok",
        "storage": getattr(container, "storage_backend", "unknown"),
        "providers": {
            provider: container.key_pool.has_keys(provider) for provider in PROVIDER_KEY_SLOTS
        },
    }
