"""
Client du fournisseur "web-grounded" (API chat.completions compatible OpenAI, ex: Perplexity).

- Requête: `{model, messages: [system, user], max_tokens, temperature}` avec jeton Bearer.
- Réponse: texte de `choices[0].message.content`, nettoyé des citations `[n]`.
- 429/401 et erreurs réseau: `TransientProviderError` (l'orchestrateur passe à la clé suivante).
- Tout autre statut non-2xx: `ProviderFatalError` (pas de nouvel essai sur ce fournisseur).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import openai
import structlog
from openai import AsyncOpenAI

from cosmic_insights.core.constants import WEB_PROVIDER, WEB_ROTATE_STATUSES
from cosmic_insights.core.logging import mask_key
from cosmic_insights.domain.errors import (
    ConfigurationError,
    ProviderFatalError,
    TransientProviderError,
)
from cosmic_insights.domain.models import GenerationRequest
from cosmic_insights.domain.parsers import clean_citations
from cosmic_insights.infra.llm.base import ProviderClient

log = structlog.get_logger(__name__)


class WebGroundedClient(ProviderClient):
    """Client chat.completions avec recherche web, une instance SDK par appel."""

    name = WEB_PROVIDER

    def __init__(
        self,
        base_url: str = "https://api.perplexity.ai",
        model: str = "sonar",
        timeout: httpx.Timeout | None = None,
        client_factory: Callable[[str], Any] | None = None,
    ) -> None:
        """Initialise le client (modèle, URL de base, timeouts explicites)."""
        self.base_url = base_url
        self.model = model
        self.timeout = timeout or httpx.Timeout(30.0, connect=5.0)
        self._client_factory = client_factory or self._default_factory

    def _default_factory(self, api_key: str) -> AsyncOpenAI:
        # max_retries=0: la rotation des clés est pilotée par l'orchestrateur
        return AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    async def generate(self, api_key: str, request: GenerationRequest) -> str:
        """Envoie la paire system/user et renvoie le texte nettoyé."""
        if not api_key:
            raise ConfigurationError(self.name)
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.user_prompt})

        client = self._client_factory(api_key)
        try:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
            )
        except openai.APIStatusError as exc:
            if exc.status_code in WEB_ROTATE_STATUSES:
                log.warning(
                    "provider_key_rejected",
                    provider=self.name,
                    key=mask_key(api_key),
                    status=exc.status_code,
                )
                raise TransientProviderError(self.name, str(exc), exc.status_code) from exc
            raise ProviderFatalError(self.name, str(exc), exc.status_code) from exc
        except openai.APIConnectionError as exc:
            raise TransientProviderError(self.name, f"network error: {exc}") from exc
        finally:
            await client.close()

        content = self._extract_content(resp)
        if not content:
            raise TransientProviderError(self.name, "empty response")
        return clean_citations(content)

    def _extract_content(self, resp: Any) -> str:
        """Extrait `choices[0].message.content` (chaîne vide si absent)."""
        try:
            choice = resp.choices[0]
        except (AttributeError, IndexError, TypeError):
            return ""
        content = getattr(getattr(choice, "message", None), "content", None)
        return str(content).strip() if content else ""
