"""Tests de l'orchestrateur de repli: rotation des clés et ordre des étapes."""

import json

import pytest

from cosmic_insights.domain.errors import (
    InsightUnavailableError,
    ProviderFatalError,
    TransientProviderError,
)
from cosmic_insights.infra.keys import KeyPool
from cosmic_insights.services.feature_plans import (
    HOROSCOPE_RETRY_MESSAGE,
    TRANSITS_RETRY_MESSAGE,
    build_default_plans,
)
from cosmic_insights.services.orchestrator import FallbackOrchestrator, FeaturePlan, ProviderStage
from tests.fakes import FakeProviderClient, make_query

HOROSCOPE_TEXT = "Bright day. Lucky Number: 4, Lucky Color: Blue, Mood: Calm, Compatibility: Leo"
LUCK_JSON = json.dumps(
    {
        "luckPercent": 72,
        "energyLevel": "high",
        "emotionalStability": "low",
        "decisionReadiness": "medium",
        "summary": "Go for it.",
    }
)
TRANSITS_JSON = json.dumps({"currentPositions": [{"planet": "Mars", "sign": "Aries"}]})


def rate_limited(provider):
    return TransientProviderError(provider, "rate limited", 429)


def _orchestrator(web, general, keys=None):
    pool = KeyPool(keys if keys is not None else {"perplexity": ["p1", "p2"], "gemini": ["g1"]})
    return FallbackOrchestrator(pool, build_default_plans(web, general))


@pytest.mark.asyncio
async def test_first_key_success_uses_web_provider():
    web = FakeProviderClient("perplexity", default=HOROSCOPE_TEXT)
    general = FakeProviderClient("gemini")
    outcome = await _orchestrator(web, general).run(make_query("horoscope"))
    assert outcome.source == "perplexity"
    assert outcome.cacheable is True
    assert outcome.result.lucky_color == "Blue"
    assert web.keys_used == ["p1"]
    assert general.calls == []


@pytest.mark.asyncio
async def test_transient_error_rotates_to_next_key():
    web = FakeProviderClient(
        "perplexity", script={"p1": [rate_limited("perplexity")]}, default=HOROSCOPE_TEXT
    )
    outcome = await _orchestrator(web, FakeProviderClient("gemini")).run(make_query())
    assert web.keys_used == ["p1", "p2"]
    assert outcome.source == "perplexity"


@pytest.mark.asyncio
async def test_all_keys_failing_moves_to_general_provider():
    web = FakeProviderClient("perplexity", default=rate_limited("perplexity"))
    general = FakeProviderClient("gemini", default=json.dumps({"horoscope": "From Gemini"}))
    outcome = await _orchestrator(web, general).run(make_query())
    assert web.keys_used == ["p1", "p2"]
    assert general.keys_used == ["g1"]
    assert outcome.source == "gemini"
    assert outcome.result.horoscope_text == "From Gemini"


@pytest.mark.asyncio
async def test_fatal_error_ends_stage_without_other_keys():
    web = FakeProviderClient("perplexity", default=ProviderFatalError("perplexity", "boom", 500))
    general = FakeProviderClient("gemini", default=HOROSCOPE_TEXT)
    outcome = await _orchestrator(web, general).run(make_query())
    assert web.keys_used == ["p1"]
    assert outcome.source == "gemini"


@pytest.mark.asyncio
async def test_horoscope_retry_later_when_everything_fails():
    web = FakeProviderClient("perplexity", default=rate_limited("perplexity"))
    general = FakeProviderClient("gemini", default=rate_limited("gemini"))
    with pytest.raises(InsightUnavailableError) as excinfo:
        await _orchestrator(web, general).run(make_query())
    assert excinfo.value.user_message == HOROSCOPE_RETRY_MESSAGE


@pytest.mark.asyncio
async def test_unconfigured_provider_is_skipped():
    web = FakeProviderClient("perplexity", default=HOROSCOPE_TEXT)
    general = FakeProviderClient("gemini", default=HOROSCOPE_TEXT)
    outcome = await _orchestrator(web, general, keys={"gemini": ["g1"]}).run(make_query())
    assert web.calls == []
    assert outcome.source == "gemini"


@pytest.mark.asyncio
async def test_transits_malformed_response_never_fabricated():
    web = FakeProviderClient("perplexity", default="Mars is somewhere, trust me.")
    general = FakeProviderClient("gemini", default=TRANSITS_JSON)
    with pytest.raises(InsightUnavailableError) as excinfo:
        await _orchestrator(web, general).run(make_query("transits"))
    assert excinfo.value.user_message == TRANSITS_RETRY_MESSAGE
    # transits n'utilise jamais le fournisseur généraliste
    assert general.calls == []
    # une réponse malformée termine l'étape: pas d'essai sur la clé suivante
    assert web.keys_used == ["p1"]


@pytest.mark.asyncio
async def test_transits_success():
    web = FakeProviderClient("perplexity", default=TRANSITS_JSON)
    outcome = await _orchestrator(web, FakeProviderClient("gemini")).run(
        make_query("transits", sign="Aries")
    )
    assert outcome.result.current_positions[0].house == 1


@pytest.mark.asyncio
async def test_luck_score_provider_then_static():
    general = FakeProviderClient("gemini", default=LUCK_JSON)
    outcome = await _orchestrator(FakeProviderClient("perplexity"), general).run(
        make_query("luck_score")
    )
    assert outcome.result.luck_percent == 72  # noqa: PLR2004
    assert outcome.cacheable is True

    broken = FakeProviderClient("gemini", default="not json at all")
    outcome = await _orchestrator(FakeProviderClient("perplexity"), broken).run(
        make_query("luck_score")
    )
    assert outcome.source == "static"
    assert outcome.cacheable is False
    assert outcome.result.luck_percent == 55  # noqa: PLR2004


@pytest.mark.asyncio
async def test_do_dont_static_without_keys():
    orchestrator = _orchestrator(
        FakeProviderClient("perplexity"), FakeProviderClient("gemini"), keys={}
    )
    outcome = await orchestrator.run(make_query("do_dont", language="hi"))
    assert outcome.source == "static"
    assert outcome.result.dos


@pytest.mark.asyncio
async def test_requests_carry_feature_settings():
    web = FakeProviderClient("perplexity", default=TRANSITS_JSON)
    await _orchestrator(web, FakeProviderClient("gemini")).run(make_query("transits"))
    _, request = web.calls[0]
    assert request.feature == "transits"
    assert request.structured_output is True
    assert request.temperature == pytest.approx(0.1)


@pytest.mark.asyncio
async def test_unexpected_sdk_error_falls_back_to_static_luck_score():
    general = FakeProviderClient("gemini", default=RuntimeError("sdk blew up"))
    outcome = await _orchestrator(FakeProviderClient("perplexity"), general).run(
        make_query("luck_score")
    )
    assert outcome.source == "static"
    assert outcome.cacheable is False


@pytest.mark.asyncio
async def test_unexpected_sdk_error_rotates_to_next_key():
    web = FakeProviderClient(
        "perplexity", script={"p1": [RuntimeError("boom")]}, default=HOROSCOPE_TEXT
    )
    outcome = await _orchestrator(web, FakeProviderClient("gemini")).run(make_query())
    assert web.keys_used == ["p1", "p2"]
    assert outcome.source == "perplexity"


@pytest.mark.asyncio
async def test_parser_crash_moves_to_static_stage():
    pool = KeyPool({"gemini": ["g1"]})
    general = FakeProviderClient("gemini", default=LUCK_JSON)
    plans = build_default_plans(FakeProviderClient("perplexity"), general)
    stage = plans["luck_score"].stages[0]

    def crash(text, query):
        raise TypeError("bad payload")

    plans["luck_score"] = FeaturePlan(
        "luck_score",
        [ProviderStage(stage.client, stage.build_request, crash), plans["luck_score"].stages[1]],
    )
    outcome = await FallbackOrchestrator(pool, plans).run(make_query("luck_score"))
    assert outcome.source == "static"
