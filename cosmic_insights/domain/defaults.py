"""
Valeurs par défaut explicites et contenus statiques déterministes.

- `DefaultPolicy`: décision inspectable des valeurs de repli par champ du parseur.
- `static_luck_score` / `static_do_dont`: dernière étape des fonctionnalités "légères",
  dérivées uniquement de la date et de la langue (jamais aléatoires).
"""

from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass
from datetime import date
from typing import Literal

from cosmic_insights.domain.models import DoDontResult, Level, LuckScoreResult

LuckyNumberMode = Literal["date_seeded", "random"]

_DOS = {
    "en": [
        "Stay positive",
        "Meditate briefly",
        "Connect with family",
        "Stay hydrated",
        "Do one good deed",
    ],
    "hi": [
        "सकारात्मक विचार रखें",
        "ध्यान करें",
        "परिवार से बात करें",
        "पानी खूब पिएं",
        "अच्छा काम करें",
    ],
}
_DONTS = {
    "en": [
        "Don't rush decisions",
        "Avoid negative people",
        "Postpone big decisions",
        "Don't overeat",
    ],
    "hi": [
        "जल्दबाजी न करें",
        "नकारात्मक लोगों से बचें",
        "बड़े निर्णय टालें",
        "अधिक खाने से बचें",
    ],
}
_LUCK_SUMMARY = {
    "en": "Today is moderately favorable. Stay patient.",
    "hi": "आज का दिन मध्यम रूप से अनुकूल है। धैर्य रखें।",
}


def _lang(language: str) -> str:
    return "hi" if language == "hi" else "en"


def weekday_index(day: date) -> int:
    """Index du jour de semaine, dimanche = 0."""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class DefaultPolicy:
    """Politique de repli par champ, appliquée quand l'extraction échoue."""

    lucky_number_mode: LuckyNumberMode = "date_seeded"
    horoscope_text: str = "Horoscope analysis in progress..."
    lucky_color: str = "Gold"
    mood: str = "Balanced"
    compatibility: str = "All signs"
    level: Level = "medium"

    def lucky_number(self, day: date, seed: str = "") -> int:
        """Nombre 1-9: stable pour (jour, graine) en mode `date_seeded`."""
        if self.lucky_number_mode == "random":
            return random.randint(1, 9)
        digest = hashlib.sha256(f"{day.isoformat()}:{seed}".encode()).digest()
        return digest[0] % 9 + 1

    def luck_summary(self, language: str) -> str:
        """Résumé générique du score de chance."""
        return _LUCK_SUMMARY[_lang(language)]


def static_do_dont(language: str) -> DoDontResult:
    """Conseils génériques (dernière étape de `do_dont`)."""
    lang = _lang(language)
    return DoDontResult(dos=list(_DOS[lang]), donts=list(_DONTS[lang]))


def static_luck_score(day: date, language: str) -> LuckScoreResult:
    """Score de chance dérivé du jour de la semaine (dernière étape de `luck_score`)."""
    dow = weekday_index(day)
    energy: Level = ("high", "medium", "low")[dow % 3]
    return LuckScoreResult(
        luck_percent=min(95, 55 + dow),
        energy_level=energy,
        emotional_stability="medium",
        decision_readiness="high" if dow % 2 == 0 else "medium",
        summary=_LUCK_SUMMARY[_lang(language)],
    )
