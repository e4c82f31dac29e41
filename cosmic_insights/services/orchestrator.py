"""Orchestrateur de repli entre fournisseurs.

Ce module pilote, pour une fonctionnalité, une suite ordonnée d'étapes (`FeaturePlan`):
- `ProviderStage`: appel d'un fournisseur avec chacune de ses clés, puis parsing;
- `StaticStage`: contenu déterministe local (jamais mis en cache);
- `RetryLaterStage`: signal "réessayez plus tard" porteur d'un message utilisateur.

On ne passe à l'étape suivante que si toutes les clés ont échoué (erreurs transitoires),
si une erreur fatale a terminé l'étape, si le parseur a rejeté la réponse, ou si aucune clé
n'est configurée.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import BaseModel

from cosmic_insights.app.metrics import INSIGHT_RESOLUTIONS, PROVIDER_CALLS, PROVIDER_LATENCY
from cosmic_insights.core.constants import STATIC_SOURCE
from cosmic_insights.core.logging import mask_key
from cosmic_insights.domain.errors import (
    ConfigurationError,
    InsightUnavailableError,
    MalformedResponseError,
    ProviderFatalError,
    TransientProviderError,
)
from cosmic_insights.domain.models import GenerationRequest, InsightQuery
from cosmic_insights.infra.keys import KeyPool
from cosmic_insights.infra.llm.base import ProviderClient

log = structlog.get_logger(__name__)

GENERIC_UNAVAILABLE = "This insight is unavailable right now. Please try again later."


@dataclass(frozen=True)
class ProviderStage:
    """Étape fournisseur: requête construite depuis la requête d'insight, puis parsing."""

    client: ProviderClient
    build_request: Callable[[InsightQuery], GenerationRequest]
    parse: Callable[[str, InsightQuery], BaseModel]

    @property
    def provider(self) -> str:
        return self.client.name


@dataclass(frozen=True)
class StaticStage:
    """Étape finale locale et déterministe."""

    produce: Callable[[InsightQuery], BaseModel]


@dataclass(frozen=True)
class RetryLaterStage:
    """Étape finale sans contenu: l'appelant affiche `message`."""

    message: str


Stage = ProviderStage | StaticStage | RetryLaterStage


@dataclass(frozen=True)
class FeaturePlan:
    feature: str
    stages: Sequence[Stage]


@dataclass(frozen=True)
class Outcome:
    """Résultat typé, étape d'origine et éligibilité au cache."""

    result: BaseModel
    source: str
    cacheable: bool


class FallbackOrchestrator:
    """Exécute le plan d'une fonctionnalité jusqu'à la première étape qui réussit."""

    def __init__(self, key_pool: KeyPool, plans: Mapping[str, FeaturePlan]):
        """Initialise l'orchestrateur avec le pool de clés et les plans par fonctionnalité."""
        self.key_pool = key_pool
        self.plans = dict(plans)

    async def run(self, query: InsightQuery) -> Outcome:
        """Calcule l'insight; lève `InsightUnavailableError` si aucune étape n'aboutit."""
        plan = self.plans.get(query.feature)
        if plan is None:
            raise KeyError(f"no plan for feature '{query.feature}'")

        for index, stage in enumerate(plan.stages):
            if isinstance(stage, RetryLaterStage):
                INSIGHT_RESOLUTIONS.labels(query.feature, "retry_later").inc()
                log.warning("insight_unavailable", feature=query.feature, stage=index)
                raise InsightUnavailableError(query.feature, stage.message)
            if isinstance(stage, StaticStage):
                INSIGHT_RESOLUTIONS.labels(query.feature, STATIC_SOURCE).inc()
                log.info("insight_static_fallback", feature=query.feature, stage=index)
                return Outcome(stage.produce(query), STATIC_SOURCE, cacheable=False)
            result = await self._run_provider_stage(stage, query)
            if result is not None:
                INSIGHT_RESOLUTIONS.labels(query.feature, stage.provider).inc()
                return Outcome(result, stage.provider, cacheable=True)

        INSIGHT_RESOLUTIONS.labels(query.feature, "exhausted").inc()
        raise InsightUnavailableError(query.feature, GENERIC_UNAVAILABLE)

    async def _run_provider_stage(self, stage: ProviderStage, query: InsightQuery) -> Any:
        """Essaie chaque clé; None signifie "passer à l'étape suivante"."""
        provider = stage.provider
        keys = self.key_pool.rotation(provider)
        if not keys:
            PROVIDER_CALLS.labels(provider, "unconfigured").inc()
            log.info("provider_skipped", provider=provider, feature=query.feature, reason="no_keys")
            return None

        request = stage.build_request(query)
        for api_key in keys:
            start = time.perf_counter()
            try:
                text = await stage.client.generate(api_key, request)
            except TransientProviderError as exc:
                PROVIDER_CALLS.labels(provider, "transient").inc()
                log.warning(
                    "provider_key_failed",
                    provider=provider,
                    feature=query.feature,
                    key=mask_key(api_key),
                    status=exc.status_code,
                )
                continue
            except ProviderFatalError as exc:
                PROVIDER_CALLS.labels(provider, "fatal").inc()
                log.warning(
                    "provider_stage_failed",
                    provider=provider,
                    feature=query.feature,
                    status=exc.status_code,
                    error=str(exc),
                )
                return None
            except ConfigurationError:
                PROVIDER_CALLS.labels(provider, "unconfigured").inc()
                return None
            except Exception:
                # erreur SDK imprévue: même traitement qu'un échec transitoire de la clé
                PROVIDER_CALLS.labels(provider, "error").inc()
                log.exception(
                    "provider_key_unexpected_error",
                    provider=provider,
                    feature=query.feature,
                    key=mask_key(api_key),
                )
                continue
            finally:
                PROVIDER_LATENCY.labels(provider).observe(time.perf_counter() - start)

            PROVIDER_CALLS.labels(provider, "ok").inc()
            try:
                return stage.parse(text, query)
            except MalformedResponseError as exc:
                log.warning(
                    "provider_response_malformed",
                    provider=provider,
                    feature=query.feature,
                    reason=exc.reason,
                )
                return None
            except Exception:
                log.exception("provider_response_unparsable", provider=provider, feature=query.feature)
                return None

        log.warning("provider_keys_exhausted", provider=provider, feature=query.feature)
        return None
