"""
Normalisation du texte brut des fournisseurs en résultats typés.

Deux régimes:
- prose (horoscope): extraction champ par champ, indépendante; chaque extraction renvoie un
  `FieldOutcome` étiqueté (trouvé / non trouvé) et le repli est décidé par `DefaultPolicy`.
  Ne lève jamais d'exception.
- sortie structurée (transits, score de chance, conseils): un objet JSON est attendu; sinon
  `MalformedResponseError`. Aucune donnée astronomique n'est inventée.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Generic, TypeVar

from cosmic_insights.core.constants import ZODIAC_SIGNS
from cosmic_insights.domain.defaults import DefaultPolicy
from cosmic_insights.domain.errors import MalformedResponseError
from cosmic_insights.domain.models import (
    LEVELS,
    DoDontResult,
    HoroscopeResult,
    LuckScoreResult,
    PersonalImpact,
    PlanetaryPosition,
    TransitResult,
)

T = TypeVar("T")

MAX_COLOR_LEN = 20
MAX_MOOD_LEN = 30
MAX_COMPATIBILITY_LEN = 50
MAX_ADVICE_ITEMS = 5

_CITATION_RE = re.compile(r"\[\d+\]")
_MULTI_SPACE_RE = re.compile(r"\s{2,}")
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_INT_RE = re.compile(r"-?\d+", re.ASCII)

# "Label: valeur" d'abord, puis "Label valeur" sans deux-points
_STRICT_GAP = r"\**\s*:\s*\**\s*"
_LOOSE_GAP = r"[\s*\-–]*"
_PHRASE = r"([A-Za-z][A-Za-z ]*?)(?=\s*(?:[,.;|*\n]|$))"

_LUCKY_NUMBER_LABEL = r"\blucky\s*number"
_LUCKY_COLOR_LABEL = r"\blucky\s*colou?r"
_MOOD_LABEL = r"\bmood\b"
_COMPATIBILITY_LABEL = r"\b(?:compatibility|compatible\s+with)\b"


@dataclass(frozen=True)
class FieldOutcome(Generic[T]):
    """Résultat étiqueté de l'extraction d'un champ."""

    value: T | None
    parsed: bool

    @classmethod
    def hit(cls, value: T) -> FieldOutcome[T]:
        return cls(value, True)

    @classmethod
    def miss(cls) -> FieldOutcome[T]:
        return cls(None, False)

    def or_default(self, default: T) -> T:
        """Valeur extraite, ou le repli fourni par la politique."""
        if self.parsed and self.value is not None:
            return self.value
        return default


def clean_citations(text: str) -> str:
    """Retire les marqueurs de citation `[n]` et réduit les espaces répétés."""
    return _MULTI_SPACE_RE.sub(" ", _CITATION_RE.sub("", text)).strip()


def load_json_object(text: str) -> dict[str, Any] | None:
    """Charge un objet JSON (tolère les blocs ```json```), ou None."""
    body = _FENCE_RE.sub("", text.strip())
    candidates = [body]
    start, end = body.find("{"), body.rfind("}")
    if 0 <= start < end:
        candidates.append(body[start : end + 1])
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(data, dict):
            return data
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        return int(value.strip())
    return None


def _as_text(value: Any, limit: int | None = None) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if limit is not None:
        cleaned = cleaned[:limit].strip()
    return cleaned or None


# ------------------------- Extraction par champ (prose) -------------------------


def extract_lucky_number(text: str) -> FieldOutcome[int]:
    """Premier entier après un libellé "lucky number", retenu s'il est entre 1 et 9."""
    for gap in (_STRICT_GAP, _LOOSE_GAP):
        match = re.search(_LUCKY_NUMBER_LABEL + gap + r"(\d+)", text, re.IGNORECASE)
        if match:
            n = int(match.group(1))
            return FieldOutcome.hit(n) if 1 <= n <= 9 else FieldOutcome.miss()
    return FieldOutcome.miss()


def _phrase_after(text: str, label: str, limit: int) -> FieldOutcome[str]:
    for gap in (_STRICT_GAP, _LOOSE_GAP):
        match = re.search(label + gap + _PHRASE, text, re.IGNORECASE)
        if match:
            phrase = match.group(1).strip()[:limit].strip()
            if phrase:
                return FieldOutcome.hit(phrase)
    return FieldOutcome.miss()


def extract_lucky_color(text: str) -> FieldOutcome[str]:
    return _phrase_after(text, _LUCKY_COLOR_LABEL, MAX_COLOR_LEN)


def extract_mood(text: str) -> FieldOutcome[str]:
    return _phrase_after(text, _MOOD_LABEL, MAX_MOOD_LEN)


def extract_compatibility(text: str) -> FieldOutcome[str]:
    return _phrase_after(text, _COMPATIBILITY_LABEL, MAX_COMPATIBILITY_LEN)


def extract_horoscope_fields(text: str) -> dict[str, FieldOutcome[Any]]:
    """Extrait chaque champ de l'horoscope indépendamment (JSON d'abord, sinon libellés)."""
    data = load_json_object(text)
    if data is not None and "horoscope" in data:
        number = _as_int(data.get("luckyNumber"))
        fields: dict[str, Any] = {
            "horoscope_text": _as_text(data.get("horoscope")),
            "lucky_number": number if number is not None and 1 <= number <= 9 else None,
            "lucky_color": _as_text(data.get("luckyColor"), MAX_COLOR_LEN),
            "mood": _as_text(data.get("mood"), MAX_MOOD_LEN),
            "compatibility": _as_text(data.get("compatibility"), MAX_COMPATIBILITY_LEN),
        }
        return {
            name: FieldOutcome.hit(value) if value is not None else FieldOutcome.miss()
            for name, value in fields.items()
        }
    body = text.strip()
    return {
        "horoscope_text": FieldOutcome.hit(body) if body else FieldOutcome.miss(),
        "lucky_number": extract_lucky_number(text),
        "lucky_color": extract_lucky_color(text),
        "mood": extract_mood(text),
        "compatibility": extract_compatibility(text),
    }


def parse_horoscope(
    text: str,
    *,
    day: date,
    seed: str = "",
    policy: DefaultPolicy | None = None,
) -> HoroscopeResult:
    """Construit un `HoroscopeResult` complet; chaque champ manquant prend sa valeur de repli."""
    policy = policy or DefaultPolicy()
    fields = extract_horoscope_fields(text or "")
    return HoroscopeResult(
        horoscope_text=fields["horoscope_text"].or_default(policy.horoscope_text),
        lucky_number=fields["lucky_number"].or_default(policy.lucky_number(day, seed)),
        lucky_color=fields["lucky_color"].or_default(policy.lucky_color),
        mood=fields["mood"].or_default(policy.mood),
        compatibility=fields["compatibility"].or_default(policy.compatibility),
    )


# ------------------------- Sorties structurées (JSON) -------------------------


def parse_luck_score(
    text: str, *, language: str, policy: DefaultPolicy | None = None
) -> LuckScoreResult:
    """Score de chance: `luckPercent` numérique requis, autres champs avec repli."""
    policy = policy or DefaultPolicy()
    data = load_json_object(text or "")
    if data is None:
        raise MalformedResponseError("luck_score", "no JSON object")
    raw_percent = data.get("luckPercent")
    if (
        isinstance(raw_percent, bool)
        or not isinstance(raw_percent, (int, float))
        or not math.isfinite(raw_percent)
    ):
        raise MalformedResponseError("luck_score", "luckPercent is not a number")

    def level(name: str) -> FieldOutcome[str]:
        value = data.get(name)
        if isinstance(value, str) and value.strip().lower() in LEVELS:
            return FieldOutcome.hit(value.strip().lower())
        return FieldOutcome.miss()

    summary = _as_text(data.get("summary"))
    return LuckScoreResult(
        luck_percent=min(99, max(1, round(raw_percent))),
        energy_level=level("energyLevel").or_default(policy.level),
        emotional_stability=level("emotionalStability").or_default(policy.level),
        decision_readiness=level("decisionReadiness").or_default(policy.level),
        summary=summary or policy.luck_summary(language),
    )


def _string_items(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return items[:MAX_ADVICE_ITEMS]


def parse_do_dont(text: str) -> DoDontResult:
    """Conseils du jour: deux listes non vides requises (5 éléments max chacune)."""
    data = load_json_object(text or "")
    if data is None:
        raise MalformedResponseError("do_dont", "no JSON object")
    dos, donts = _string_items(data.get("dos")), _string_items(data.get("donts"))
    if not dos or not donts:
        raise MalformedResponseError("do_dont", "dos/donts missing or empty")
    return DoDontResult(dos=dos, donts=donts)


def sign_id_of(sign: str | None) -> int | None:
    """Numéro 1-12 d'un signe à partir de son nom anglais."""
    if not sign:
        return None
    wanted = sign.strip().casefold()
    for index, name in enumerate(ZODIAC_SIGNS, start=1):
        if name.casefold() == wanted:
            return index
    return None


def house_from(sign_id: int, reference_id: int) -> int:
    """Maison comptée depuis le signe de référence (maison 1 = signe de référence)."""
    return ((sign_id - reference_id + 12) % 12) + 1


def _position(raw: Any, reference_id: int | None) -> PlanetaryPosition | None:
    if not isinstance(raw, dict):
        return None
    planet = _as_text(raw.get("planet"))
    if not planet:
        return None
    sign = _as_text(raw.get("sign"))
    sign_id = _as_int(raw.get("signId"))
    if sign_id is None or not 1 <= sign_id <= 12:
        sign_id = sign_id_of(sign)
    if sign_id is None:
        return None
    sign = sign or ZODIAC_SIGNS[sign_id - 1]
    house = _as_int(raw.get("house"))
    if reference_id is not None or house is None or not 1 <= house <= 12:
        house = house_from(sign_id, reference_id or 1)
    retrograde = raw.get("isRetrograde") is True and planet.casefold() not in ("sun", "moon")
    degree = raw.get("degree")
    return PlanetaryPosition(
        planet=planet,
        sign=sign,
        sign_id=sign_id,
        house=house,
        is_retrograde=retrograde,
        nakshatra=_as_text(raw.get("nakshatra")),
        degree=str(degree).strip() if degree not in (None, "") else None,
    )


def _impact(raw: Any, reference_id: int | None) -> PersonalImpact | None:
    if not isinstance(raw, dict):
        return None
    planet, sign, meaning = (
        _as_text(raw.get("planet")),
        _as_text(raw.get("sign")),
        _as_text(raw.get("meaning")),
    )
    if not (planet and sign and meaning):
        return None
    house = _as_int(raw.get("house"))
    sign_id = sign_id_of(sign)
    if reference_id is not None and sign_id is not None:
        house = house_from(sign_id, reference_id)
    if house is None or not 1 <= house <= 12:
        return None
    return PersonalImpact(planet=planet, house=house, sign=sign, meaning=meaning)


def parse_transits(text: str, *, reference_sign: str | None = None) -> TransitResult:
    """Transits: objet JSON avec au moins une position valide, sinon `MalformedResponseError`."""
    data = load_json_object(text or "")
    if data is None:
        raise MalformedResponseError("transits", "no JSON object")
    raw_positions = data.get("currentPositions")
    if not isinstance(raw_positions, list):
        raise MalformedResponseError("transits", "currentPositions is not a list")
    reference_id = sign_id_of(reference_sign)
    positions = [p for p in (_position(r, reference_id) for r in raw_positions) if p]
    if not positions:
        raise MalformedResponseError("transits", "no valid planetary position")
    raw_impact = data.get("personalImpact")
    impacts = [
        i
        for i in (_impact(r, reference_id) for r in (raw_impact if isinstance(raw_impact, list) else []))
        if i
    ]
    return TransitResult(current_positions=positions, personal_impact=impacts)
