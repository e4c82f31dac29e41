"""
Conteneur d'injection de dépendances.

Instancie les composants centraux (settings, pool de clés, clients fournisseurs, store,
orchestrateur, service) et expose un singleton `container` utilisé par l'API.
"""

import httpx

from cosmic_insights.core.settings import Settings, get_settings
from cosmic_insights.domain.defaults import DefaultPolicy
from cosmic_insights.infra.cache_store import build_store
from cosmic_insights.infra.keys import KeyPool
from cosmic_insights.infra.llm.gemini_client import GeminiClient
from cosmic_insights.infra.llm.web_grounded_client import WebGroundedClient
from cosmic_insights.services.feature_plans import build_default_plans
from cosmic_insights.services.insights import DailyInsightsService
from cosmic_insights.services.orchestrator import FallbackOrchestrator


class Container:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        s = self.settings
        self.key_pool = KeyPool.from_settings(s)
        self.policy = DefaultPolicy(lucky_number_mode=s.LUCKY_NUMBER_DEFAULT)
        timeout = httpx.Timeout(
            s.PROVIDER_TIMEOUT_SECONDS, connect=s.PROVIDER_CONNECT_TIMEOUT_SECONDS
        )
        self.web_client = WebGroundedClient(
            base_url=s.PERPLEXITY_BASE_URL, model=s.PERPLEXITY_MODEL, timeout=timeout
        )
        self.general_client = GeminiClient(
            model=s.GEMINI_MODEL, timeout_seconds=s.PROVIDER_TIMEOUT_SECONDS
        )
        self.store, self.storage_backend = build_store(s)
        self.orchestrator = FallbackOrchestrator(
            self.key_pool,
            build_default_plans(self.web_client, self.general_client, self.policy),
        )
        self.insights = DailyInsightsService(
            self.orchestrator, self.store, sweep_enabled=s.CACHE_SWEEP_ENABLED
        )


container = Container()
