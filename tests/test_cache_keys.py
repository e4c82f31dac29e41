"""Tests de l'empreinte de contexte et des clés de cache journalières."""

from datetime import date

from cosmic_insights.domain.cache_keys import CacheKey, ContextFingerprint
from cosmic_insights.domain.models import InsightContext


def test_absent_context_is_general():
    assert ContextFingerprint.from_context(None).value == "general"
    assert ContextFingerprint.from_context(InsightContext()).value == "general"
    assert ContextFingerprint.from_context(InsightContext(sign="  ")).value == "general"


def test_equal_inputs_give_identical_fingerprint():
    a = ContextFingerprint.from_context(InsightContext(sign="Leo", moon_sign="Aries"))
    b = ContextFingerprint.from_context(InsightContext(sign=" leo ", moon_sign="ARIES"))
    assert a == b
    assert a.value == "leo|aries|"


def test_field_order_matters():
    a = ContextFingerprint.from_context(InsightContext(sign="Leo"))
    b = ContextFingerprint.from_context(InsightContext(moon_sign="Leo"))
    assert a != b


def test_separators_are_neutralized():
    fp = ContextFingerprint.from_context(InsightContext(nakshatra="a|b:c"))
    assert fp.value == "||a%7Cb%3Ac"
    key = CacheKey("horoscope", date(2026, 10, 18), "en", fp).render()
    assert CacheKey.day_of(key) == date(2026, 10, 18)


def test_render_and_day_of():
    key = CacheKey(
        "luck_score", date(2026, 10, 18), "hi", ContextFingerprint("general")
    ).render()
    assert key == "luck_score:2026-10-18:hi:general"
    assert CacheKey.day_of(key) == date(2026, 10, 18)
    assert CacheKey.day_of("garbage") is None
    assert CacheKey.day_of("horoscope:not-a-date:en:general") is None


def test_separator_and_underscore_stay_distinct():
    values = ["a|b", "a_b", "a:b", "a%7Cb", "a%b"]
    fingerprints = {
        ContextFingerprint.from_context(InsightContext(nakshatra=v)).value for v in values
    }
    assert len(fingerprints) == len(values)
