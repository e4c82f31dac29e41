"""
Client du fournisseur généraliste (Gemini, SDK `google-genai`).

Les prompts system/user sont transmis séparément (`system_instruction`), et la sortie JSON est
demandée via `response_mime_type` quand la requête est structurée.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from cosmic_insights.core.constants import GEMINI_ROTATE_STATUSES, GENERAL_PROVIDER
from cosmic_insights.core.logging import mask_key
from cosmic_insights.domain.errors import (
    ConfigurationError,
    ProviderFatalError,
    TransientProviderError,
)
from cosmic_insights.domain.models import GenerationRequest
from cosmic_insights.infra.llm.base import ProviderClient

log = structlog.get_logger(__name__)


class GeminiClient(ProviderClient):
    """Client `generate_content` asynchrone; une instance SDK par clé."""

    name = GENERAL_PROVIDER

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        timeout_seconds: float = 30.0,
        client_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._client_factory = client_factory or self._default_factory

    def _default_factory(self, api_key: str) -> genai.Client:
        # HttpOptions.timeout est exprimé en millisecondes
        return genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
        )

    def _config(self, request: GenerationRequest) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=request.system_prompt or None,
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
            response_mime_type="application/json" if request.structured_output else None,
        )

    async def generate(self, api_key: str, request: GenerationRequest) -> str:
        """Génère le texte brut; 401/403/429 et erreurs réseau sont transitoires."""
        if not api_key:
            raise ConfigurationError(self.name)
        client = self._client_factory(api_key)
        try:
            resp = await client.aio.models.generate_content(
                model=self.model,
                contents=request.user_prompt,
                config=self._config(request),
            )
        except genai_errors.APIError as exc:
            if exc.code in GEMINI_ROTATE_STATUSES:
                log.warning(
                    "provider_key_rejected",
                    provider=self.name,
                    key=mask_key(api_key),
                    status=exc.code,
                )
                raise TransientProviderError(self.name, str(exc), exc.code) from exc
            raise ProviderFatalError(self.name, str(exc), exc.code) from exc
        except httpx.TransportError as exc:
            raise TransientProviderError(self.name, f"network error: {exc}") from exc
        finally:
            # un client SDK par clé: ses connexions sont libérées après chaque appel
            await client.aio.aclose()

        text = (getattr(resp, "text", None) or "").strip()
        if not text:
            raise TransientProviderError(self.name, "empty response")
        return text
