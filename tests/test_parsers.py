"""Tests du parseur de réponses (prose et sorties structurées)."""

import json
from datetime import date

import pytest

from cosmic_insights.domain.defaults import DefaultPolicy
from cosmic_insights.domain.errors import MalformedResponseError
from cosmic_insights.domain.parsers import (
    clean_citations,
    extract_compatibility,
    extract_lucky_color,
    extract_lucky_number,
    extract_mood,
    house_from,
    load_json_object,
    parse_do_dont,
    parse_horoscope,
    parse_luck_score,
    parse_transits,
)

DAY = date(2026, 10, 18)
LUCKY_SEVEN = 7


def test_footer_line_extracts_every_field():
    text = "Lucky Number: 7, Lucky Color: Blue, Mood: Calm, Compatibility: Leo"
    result = parse_horoscope(text, day=DAY)
    assert result.lucky_number == LUCKY_SEVEN
    assert result.lucky_color == "Blue"
    assert result.mood == "Calm"
    assert result.compatibility == "Leo"


def test_fields_are_independent():
    text = "A calm day ahead.\nLucky Number: 12, Lucky Color: Deep Red, Mood: Hopeful"
    result = parse_horoscope(text, day=DAY, seed="s")
    # 12 est hors bornes: seul ce champ tombe sur la politique
    assert result.lucky_number == DefaultPolicy().lucky_number(DAY, "s")
    assert result.lucky_color == "Deep Red"
    assert result.mood == "Hopeful"
    assert result.compatibility == "All signs"


def test_markdown_bold_labels():
    text = "**Lucky Number:** 3\n**Lucky Colour:** Green\n**Mood:** Focused\n**Compatible with** Virgo"
    assert extract_lucky_number(text).value == 3  # noqa: PLR2004
    assert extract_lucky_color(text).value == "Green"
    assert extract_mood(text).value == "Focused"
    assert extract_compatibility(text).value == "Virgo"


def test_length_caps():
    text = "Mood: " + "a" * 60 + "\nLucky Color: " + "b" * 40
    assert len(extract_mood(text).value) == 30  # noqa: PLR2004
    assert len(extract_lucky_color(text).value) == 20  # noqa: PLR2004


def test_missing_fields_are_tagged_as_misses():
    outcome = extract_lucky_number("nothing useful")
    assert outcome.parsed is False
    assert outcome.or_default(4) == 4  # noqa: PLR2004


def test_default_safety_on_garbage():
    for text in ("", "   ", "}{", "Lucky Number: 0", "\x00\x01"):
        result = parse_horoscope(text, day=DAY)
        assert 1 <= result.lucky_number <= 9
        assert result.horoscope_text
        assert result.lucky_color and result.mood and result.compatibility


def test_date_seeded_lucky_number_is_stable():
    policy = DefaultPolicy()
    a = parse_horoscope("no footer", day=DAY, seed="en:general", policy=policy)
    b = parse_horoscope("no footer", day=DAY, seed="en:general", policy=policy)
    assert a.lucky_number == b.lucky_number


def test_json_horoscope_body():
    body = json.dumps(
        {
            "horoscope": "Good things.",
            "luckyNumber": "5",
            "luckyColor": "Silver",
            "mood": "Joyful",
            "compatibility": "Taurus",
        }
    )
    result = parse_horoscope(f"```json\n{body}\n```", day=DAY)
    assert result.horoscope_text == "Good things."
    assert result.lucky_number == 5  # noqa: PLR2004
    assert result.lucky_color == "Silver"


def test_clean_citations():
    assert clean_citations("Mars rises [1] today  [23] .") == "Mars rises today ."


def test_load_json_object_tolerates_prose_around():
    assert load_json_object('Sure! {"dos": []} hope it helps') == {"dos": []}
    assert load_json_object("[1, 2]") is None


def test_luck_score_clamps_and_defaults():
    result = parse_luck_score(
        '{"luckPercent": 150, "energyLevel": "HIGH", "emotionalStability": "weird"}',
        language="en",
    )
    assert result.luck_percent == 99  # noqa: PLR2004
    assert result.energy_level == "high"
    assert result.emotional_stability == "medium"
    assert result.summary


@pytest.mark.parametrize("text", ["no json", '{"luckPercent": "high"}', '{"luckPercent": true}'])
def test_luck_score_malformed(text):
    with pytest.raises(MalformedResponseError):
        parse_luck_score(text, language="en")


def test_do_dont_caps_items():
    text = json.dumps({"dos": [f"do {i}" for i in range(8)], "donts": ["x", " ", 3]})
    result = parse_do_dont(text)
    assert len(result.dos) == 5  # noqa: PLR2004
    assert result.donts == ["x"]


def test_do_dont_requires_both_lists():
    with pytest.raises(MalformedResponseError):
        parse_do_dont('{"dos": ["a"], "donts": []}')


def test_house_from_reference():
    assert house_from(1, 1) == 1
    assert house_from(5, 5) == 1
    assert house_from(4, 5) == 12  # noqa: PLR2004


def test_transits_normalization():
    text = json.dumps(
        {
            "currentPositions": [
                {"planet": "Sun", "sign": "Libra", "house": 3, "isRetrograde": True},
                {"planet": "Saturn", "signId": 12, "isRetrograde": True, "degree": 7.5},
                {"planet": "Nobody"},
                "junk",
            ],
            "personalImpact": [
                {"planet": "Sun", "sign": "Libra", "house": 1, "meaning": "Focus on ties"},
                {"planet": "Mars", "meaning": "incomplete"},
            ],
        }
    )
    result = parse_transits(text, reference_sign="Leo")
    sun, saturn = result.current_positions
    assert (sun.sign_id, sun.house, sun.is_retrograde) == (7, 3, False)
    assert (saturn.sign, saturn.house, saturn.is_retrograde) == ("Pisces", 8, True)
    assert saturn.degree == "7.5"
    assert len(result.personal_impact) == 1
    assert result.personal_impact[0].house == 3  # noqa: PLR2004


@pytest.mark.parametrize(
    "text",
    [
        "The planets are moving.",
        '{"currentPositions": "none"}',
        '{"currentPositions": [{"planet": "Mars"}]}',
    ],
)
def test_transits_are_never_invented(text):
    with pytest.raises(MalformedResponseError):
        parse_transits(text)


def test_non_ascii_digits_never_raise_in_horoscope():
    body = json.dumps({"horoscope": "ok", "luckyNumber": "²"})
    result = parse_horoscope(body, day=DAY, seed="s")
    assert result.horoscope_text == "ok"
    assert result.lucky_number == DefaultPolicy().lucky_number(DAY, "s")


def test_non_ascii_sign_id_is_malformed_not_value_error():
    with pytest.raises(MalformedResponseError):
        parse_transits('{"currentPositions": [{"planet": "Mars", "signId": "²"}]}')
    # un signId illisible retombe sur le nom du signe
    result = parse_transits('{"currentPositions": [{"planet": "Mars", "signId": "²", "sign": "Leo"}]}')
    assert result.current_positions[0].sign_id == 5  # noqa: PLR2004
