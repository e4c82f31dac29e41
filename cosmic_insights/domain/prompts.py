"""Construction des requêtes de génération par fonctionnalité et par fournisseur."""

from __future__ import annotations

from datetime import date

from cosmic_insights.core.constants import DEFAULT_LANGUAGE, LANGUAGE_NAMES
from cosmic_insights.domain.models import GenerationRequest, InsightContext, InsightQuery

ASTROLOGER_SYSTEM = "You are an expert Vedic astrologer."
MENTOR_SYSTEM = (
    "You are a world-class mentor who explains astrology with deep insight but simple words. "
    "Respond ONLY in the language requested by the user."
)
HOROSCOPE_FOOTER = "Lucky Number: (1-9), Lucky Color: (color name), Mood: (one word), Compatibility: (zodiac sign)"


def language_name(language: str) -> str:
    return LANGUAGE_NAMES.get(language, LANGUAGE_NAMES[DEFAULT_LANGUAGE])


def long_date(day: date) -> str:
    """Date lisible du type "Sunday, 18 October 2026"."""
    return f"{day:%A}, {day.day} {day:%B} {day.year}"


def _is_personalized(ctx: InsightContext) -> bool:
    return bool(ctx.moon_sign or ctx.nakshatra)


def _subject(ctx: InsightContext) -> str:
    return ctx.sign or ctx.moon_sign or "all zodiac signs"


def _context_line(ctx: InsightContext) -> str:
    if not (ctx.sign or ctx.moon_sign or ctx.nakshatra):
        return "General"
    return (
        f"Sign: {ctx.sign or 'Unknown'}, Moon: {ctx.moon_sign or '-'}, "
        f"Nakshatra: {ctx.nakshatra or '-'}"
    )


def horoscope_web_request(query: InsightQuery) -> GenerationRequest:
    """Horoscope du jour via le fournisseur avec recherche web."""
    ctx, today, lang = query.context, long_date(query.day), language_name(query.language)
    if _is_personalized(ctx):
        chart = (
            f"- Surya Rashi (Sun Sign): {ctx.sign or 'Unknown'}\n"
            f"- Chandra Rashi (Moon Sign): {ctx.moon_sign or 'Unknown'}\n"
            f"- Janma Nakshatra (Birth Star): {ctx.nakshatra or 'Unknown'}"
        )
        system = (
            f"{ASTROLOGER_SYSTEM} Search the web for today's ({today}) personalized daily "
            f"horoscope based on the following birth chart details:\n{chart}\n"
            "Consider ALL these chart elements, not just one sign.\n"
            f"Respond ONLY in {lang}. Keep the main horoscope text to 150-300 words.\n"
            "Use **bold** for key points and bullet points for Career, Love, Health, Finance.\n"
            "End with: Lucky Number: X, Lucky Color: Y, Mood: Z, Compatibility: W"
        )
        user = (
            f"Generate today's ({today}) personalized daily horoscope for someone with: "
            f"{_context_line(ctx)}.\n"
            f"Structure: 1) Brief intro, 2) Bullet points for Career, Love, Health, Finance, "
            f"3) {HOROSCOPE_FOOTER}."
        )
    else:
        sign = _subject(ctx)
        system = (
            f"{ASTROLOGER_SYSTEM} Search the web for today's ({today}) daily horoscope for "
            f"{sign}.\nProvide a concise, accurate prediction based on current planetary "
            "transits and reputable astrology sources.\n"
            f"Respond ONLY in {lang}. Keep the main horoscope text to 150-250 words.\n"
            "Use **bold** for key points and bullet points for Career, Love, Health, Finance.\n"
            "End with: Lucky Number: X, Lucky Color: Y, Mood: Z, Compatibility: W"
        )
        user = (
            f"What is today's ({today}) daily horoscope for {sign}?\n"
            "Structure your response:\n1. Brief intro paragraph\n"
            "2. Bullet points for: Career, Love, Health, Finance\n"
            f"3. End with: {HOROSCOPE_FOOTER}"
        )
    return GenerationRequest(
        feature="horoscope",
        system_prompt=system,
        user_prompt=user,
        language=query.language,
        temperature=0.3,
        max_tokens=1024,
    )


def horoscope_general_request(query: InsightQuery) -> GenerationRequest:
    """Horoscope du jour via le fournisseur généraliste (sortie JSON)."""
    lang = language_name(query.language)
    user = (
        f"Planetary transits for {_subject(query.context)} on {long_date(query.day)}. "
        f"Context: {_context_line(query.context)}. IMPORTANT: Respond in {lang}.\n"
        'Return JSON: {"horoscope": string, "luckyNumber": integer 1-9, "luckyColor": string, '
        '"mood": string, "compatibility": string}. Format the horoscope field with a brief '
        "intro, then bullet points for Career, Love, Health, Finance."
    )
    return GenerationRequest(
        feature="horoscope",
        system_prompt=f"{MENTOR_SYSTEM} Respond in {lang}.",
        user_prompt=user,
        language=query.language,
        temperature=0.4,
        max_tokens=1024,
        structured_output=True,
    )


def transits_web_request(query: InsightQuery) -> GenerationRequest:
    """Positions planétaires du jour (sidéral) via le fournisseur avec recherche web."""
    reference = query.context.sign or query.context.moon_sign or "Aries"
    today = long_date(query.day)
    system = (
        f"{ASTROLOGER_SYSTEM} Search the web for today's ({today}) sidereal (Lahiri) "
        "planetary positions. Never guess positions. Respond ONLY with one JSON object, "
        "no prose, no markdown."
    )
    user = (
        f"Current positions of Sun, Moon, Mars, Mercury, Jupiter, Venus, Saturn, Rahu, Ketu "
        f"on {today}, with houses counted from {reference} as house 1. "
        f"Write the meanings in {language_name(query.language)}.\n"
        'Return JSON: {"currentPositions": [{"planet": string, "sign": string, '
        '"signId": integer 1-12, "house": integer 1-12, "isRetrograde": boolean, '
        '"nakshatra": string, "degree": string}], "personalImpact": [{"planet": string, '
        '"house": integer, "sign": string, "meaning": string}]}'
    )
    return GenerationRequest(
        feature="transits",
        system_prompt=system,
        user_prompt=user,
        language=query.language,
        temperature=0.1,
        max_tokens=2048,
        structured_output=True,
    )


def luck_score_request(query: InsightQuery) -> GenerationRequest:
    ctx = query.context
    context = f"Sign: {ctx.sign}, Moon: {ctx.moon_sign}" if (ctx.sign or ctx.moon_sign) else "General"
    user = (
        f"Today's date: {query.day.isoformat()}. Astrology context: {context}. "
        'Return JSON: {"luckPercent": number 1-99, "energyLevel": "low"|"medium"|"high", '
        '"emotionalStability": "low"|"medium"|"high", "decisionReadiness": '
        '"low"|"medium"|"high", "summary": "one short sentence"}. '
        f"Language for summary: {language_name(query.language)}."
    )
    return GenerationRequest(
        feature="luck_score",
        system_prompt="",
        user_prompt=user,
        language=query.language,
        temperature=0.7,
        max_tokens=256,
        structured_output=True,
    )


def do_dont_request(query: InsightQuery) -> GenerationRequest:
    user = (
        f"Generate today's ({query.day.isoformat()}) astrological Do's and Don'ts. "
        f"Context: {_context_line(query.context)}. "
        'Return JSON: {"dos": ["item1", "item2", ...], "donts": ["item1", "item2", ...]}. '
        "Max 5 each. Be concise, practical. "
        f"Language: {language_name(query.language)}."
    )
    return GenerationRequest(
        feature="do_dont",
        system_prompt="",
        user_prompt=user,
        language=query.language,
        temperature=0.7,
        max_tokens=512,
        structured_output=True,
    )
