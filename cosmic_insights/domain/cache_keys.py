"""Empreinte de contexte et clés de cache journalières.

Règle de clé: `{feature}:{YYYY-MM-DD}:{language}:{fingerprint}`.
La date est la seule source d'expiration (aucun TTL).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from cosmic_insights.core.constants import GENERAL_FINGERPRINT
from cosmic_insights.domain.models import InsightContext

FINGERPRINT_SEPARATOR = "|"
KEY_SEPARATOR = ":"


def _normalize_field(value: str | None) -> str:
    if value is None:
        return ""
    cleaned = " ".join(value.split()).casefold()
    # encodage type URL: "%" d'abord pour que l'encodage reste injectif
    return (
        cleaned.replace("%", "%25")
        .replace(FINGERPRINT_SEPARATOR, "%7C")
        .replace(KEY_SEPARATOR, "%3A")
    )


@dataclass(frozen=True)
class ContextFingerprint:
    """Réduction déterministe d'un contexte optionnel en chaîne courte."""

    value: str

    @classmethod
    def from_context(cls, context: InsightContext | None) -> ContextFingerprint:
        """Construit l'empreinte: champs joints dans un ordre fixe, ou `general`."""
        if context is None:
            return cls(GENERAL_FINGERPRINT)
        parts = [
            _normalize_field(context.sign),
            _normalize_field(context.moon_sign),
            _normalize_field(context.nakshatra),
        ]
        if not any(parts):
            return cls(GENERAL_FINGERPRINT)
        return cls(FINGERPRINT_SEPARATOR.join(parts))

    def __str__(self) -> str:
        """Retourne la valeur brute de l'empreinte."""
        return self.value


@dataclass(frozen=True)
class CacheKey:
    """Clé composite (fonctionnalité, date locale, langue, empreinte)."""

    feature: str
    day: date
    language: str
    fingerprint: ContextFingerprint

    def render(self) -> str:
        """Sérialise la clé de manière stable."""
        return KEY_SEPARATOR.join(
            [self.feature, self.day.isoformat(), self.language, self.fingerprint.value]
        )

    @staticmethod
    def day_of(raw_key: str) -> date | None:
        """Extrait la date d'une clé sérialisée (None si la clé est illisible)."""
        parts = raw_key.split(KEY_SEPARATOR, 3)
        if len(parts) != 4:
            return None
        try:
            return date.fromisoformat(parts[1])
        except ValueError:
            return None
