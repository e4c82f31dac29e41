"""Plans de repli par fonctionnalité (ordre des fournisseurs et étape finale)."""

from __future__ import annotations

from cosmic_insights.domain import parsers, prompts
from cosmic_insights.domain.cache_keys import ContextFingerprint
from cosmic_insights.domain.defaults import DefaultPolicy, static_do_dont, static_luck_score
from cosmic_insights.domain.models import InsightQuery
from cosmic_insights.infra.llm.base import ProviderClient
from cosmic_insights.services.orchestrator import (
    FeaturePlan,
    ProviderStage,
    RetryLaterStage,
    StaticStage,
)

HOROSCOPE_RETRY_MESSAGE = "Cosmic is busy aligning the stars. Please try again after some time."
TRANSITS_RETRY_MESSAGE = "We couldn't load transit data right now. Please try again in a moment."


def _seed(query: InsightQuery) -> str:
    fingerprint = ContextFingerprint.from_context(query.context).value
    return f"{query.language}:{fingerprint}"


def build_default_plans(
    web_client: ProviderClient,
    general_client: ProviderClient,
    policy: DefaultPolicy | None = None,
) -> dict[str, FeaturePlan]:
    """Construit les plans standard:

    - horoscope: web -> généraliste -> réessayer plus tard
    - transits: web -> réessayer plus tard (jamais de données inventées)
    - luck_score: généraliste -> score statique daté
    - do_dont: généraliste -> conseils statiques
    """
    policy = policy or DefaultPolicy()

    def horoscope(text: str, query: InsightQuery):
        return parsers.parse_horoscope(text, day=query.day, seed=_seed(query), policy=policy)

    def transits(text: str, query: InsightQuery):
        return parsers.parse_transits(
            text, reference_sign=query.context.sign or query.context.moon_sign
        )

    def luck_score(text: str, query: InsightQuery):
        return parsers.parse_luck_score(text, language=query.language, policy=policy)

    def do_dont(text: str, query: InsightQuery):
        return parsers.parse_do_dont(text)

    return {
        "horoscope": FeaturePlan(
            "horoscope",
            [
                ProviderStage(web_client, prompts.horoscope_web_request, horoscope),
                ProviderStage(general_client, prompts.horoscope_general_request, horoscope),
                RetryLaterStage(HOROSCOPE_RETRY_MESSAGE),
            ],
        ),
        "transits": FeaturePlan(
            "transits",
            [
                ProviderStage(web_client, prompts.transits_web_request, transits),
                RetryLaterStage(TRANSITS_RETRY_MESSAGE),
            ],
        ),
        "luck_score": FeaturePlan(
            "luck_score",
            [
                ProviderStage(general_client, prompts.luck_score_request, luck_score),
                StaticStage(lambda q: static_luck_score(q.day, q.language)),
            ],
        ),
        "do_dont": FeaturePlan(
            "do_dont",
            [
                ProviderStage(general_client, prompts.do_dont_request, do_dont),
                StaticStage(lambda q: static_do_dont(q.language)),
            ],
        ),
    }
