"""Interface de base des clients de génération de texte."""

from __future__ import annotations

from abc import ABC, abstractmethod

from cosmic_insights.domain.models import GenerationRequest


class ProviderClient(ABC):
    """Interface abstraite d'un fournisseur de génération.

    Le client est sans état vis-à-vis des clés: la clé est un paramètre de chaque appel.
    Une implémentation lève `TransientProviderError` (clé suivante) ou `ProviderFatalError`
    (fin de l'étape) et ne renvoie jamais de texte vide.
    """

    name: str

    @abstractmethod
    async def generate(self, api_key: str, request: GenerationRequest) -> str:
        """Génère le texte brut pour une requête avec la clé fournie."""
        ...
