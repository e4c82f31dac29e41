"""Service des insights quotidiens: cache journalier devant l'orchestrateur de repli.

Flux: clé (fonctionnalité, jour local, langue, empreinte) -> store -> hit: retour;
miss -> orchestrateur -> mise en cache si le résultat vient d'un fournisseur -> retour.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import date

import structlog
from pydantic import BaseModel

from cosmic_insights.app.metrics import INSIGHT_CACHE_LOOKUPS
from cosmic_insights.core.constants import DEFAULT_LANGUAGE
from cosmic_insights.domain.cache_keys import CacheKey, ContextFingerprint
from cosmic_insights.domain.models import (
    RESULT_MODELS,
    DoDontResult,
    Feature,
    HoroscopeResult,
    InsightContext,
    InsightQuery,
    LuckScoreResult,
    TransitResult,
)
from cosmic_insights.infra.cache_store import InsightStore
from cosmic_insights.services.orchestrator import FallbackOrchestrator

log = structlog.get_logger(__name__)


def normalize_language(language: str | None) -> str:
    """Code langue en minuscules, `en` par défaut."""
    return (language or "").strip().lower() or DEFAULT_LANGUAGE


class DailyInsightsService:
    """Point d'entrée applicatif: un calcul réseau au plus par clé et par jour (hors échec)."""

    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        store: InsightStore,
        today: Callable[[], date] = date.today,
        sweep_enabled: bool = True,
    ):
        """Initialise le service (horloge injectable pour les tests)."""
        self.orchestrator = orchestrator
        self.store = store
        self._today = today
        self.sweep_enabled = sweep_enabled
        self._last_sweep: date | None = None

    async def _maybe_sweep(self, day: date) -> None:
        if not self.sweep_enabled or self._last_sweep == day:
            return
        self._last_sweep = day
        await asyncio.to_thread(self.store.sweep, day)

    async def get(
        self,
        feature: Feature,
        language: str | None = None,
        context: InsightContext | None = None,
    ) -> BaseModel:
        """Renvoie l'insight du jour (cache ou calcul).

        Lève `InsightUnavailableError` pour `horoscope`/`transits` si aucun fournisseur n'aboutit.
        """
        day = self._today()
        lang = normalize_language(language)
        ctx = context or InsightContext()
        await self._maybe_sweep(day)

        key = CacheKey(feature, day, lang, ContextFingerprint.from_context(ctx)).render()
        # stores synchrones (fichier, Redis): exécutés hors de la boucle d'événements
        cached = await asyncio.to_thread(self.store.get, key, RESULT_MODELS[feature])
        if cached is not None:
            INSIGHT_CACHE_LOOKUPS.labels(feature, "hit").inc()
            log.debug("insight_cache_hit", key=key)
            return cached

        INSIGHT_CACHE_LOOKUPS.labels(feature, "miss").inc()
        outcome = await self.orchestrator.run(InsightQuery(feature, day, lang, ctx))
        if outcome.cacheable:
            await asyncio.to_thread(self.store.set, key, outcome.result)
        log.info("insight_computed", key=key, source=outcome.source, cached=outcome.cacheable)
        return outcome.result

    async def get_horoscope(
        self, language: str | None = None, context: InsightContext | None = None
    ) -> HoroscopeResult:
        return await self.get("horoscope", language, context)

    async def get_transits(
        self, language: str | None = None, context: InsightContext | None = None
    ) -> TransitResult:
        return await self.get("transits", language, context)

    async def get_luck_score(
        self, language: str | None = None, context: InsightContext | None = None
    ) -> LuckScoreResult:
        return await self.get("luck_score", language, context)

    async def get_dos_donts(
        self, language: str | None = None, context: InsightContext | None = None
    ) -> DoDontResult:
        return await self.get("do_dont", language, context)
