"""Modèles de domaine (cœur métier) du pipeline d'insights quotidiens.

Objectif du module
------------------
- Définir le contexte utilisateur, la requête de génération et les résultats typés.
- Les résultats sont sérialisés en camelCase (alias) pour le cache et l'API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Feature = Literal["horoscope", "transits", "luck_score", "do_dont"]
FEATURES: tuple[Feature, ...] = ("horoscope", "transits", "luck_score", "do_dont")

Level = Literal["low", "medium", "high"]
LEVELS: tuple[Level, ...] = ("low", "medium", "high")


class InsightContext(BaseModel):
    """Contexte astrologique optionnel fourni par l'appelant."""

    model_config = ConfigDict(frozen=True)

    sign: str | None = Field(default=None, description="Signe de référence (solaire/rashi)")
    moon_sign: str | None = None
    nakshatra: str | None = None


@dataclass(frozen=True)
class GenerationRequest:
    """Requête de génération envoyée à un fournisseur."""

    feature: Feature
    system_prompt: str
    user_prompt: str
    language: str
    temperature: float = 0.3
    max_tokens: int = 1024
    structured_output: bool = False


@dataclass(frozen=True)
class InsightQuery:
    """Entrées d'un calcul: fonctionnalité, jour local, langue et contexte."""

    feature: Feature
    day: date
    language: str
    context: InsightContext = field(default_factory=InsightContext)


class _Result(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HoroscopeResult(_Result):
    """Horoscope du jour et ses champs "chance"."""

    horoscope_text: str
    lucky_number: int = Field(ge=1, le=9)
    lucky_color: str
    mood: str
    compatibility: str


class LuckScoreResult(_Result):
    """Score de chance du jour."""

    luck_percent: int = Field(ge=1, le=99)
    energy_level: Level
    emotional_stability: Level
    decision_readiness: Level
    summary: str


class DoDontResult(_Result):
    """Conseils du jour: à faire / à éviter."""

    dos: list[str]
    donts: list[str]


class PlanetaryPosition(_Result):
    """Position courante d'une planète."""

    planet: str
    sign: str
    sign_id: int = Field(ge=1, le=12)
    house: int = Field(ge=1, le=12)
    is_retrograde: bool = False
    nakshatra: str | None = None
    degree: str | None = None


class PersonalImpact(_Result):
    """Effet d'un transit sur une maison du thème de référence."""

    planet: str
    house: int = Field(ge=1, le=12)
    sign: str
    meaning: str


class TransitResult(_Result):
    """Positions planétaires du jour et leur impact personnel."""

    current_positions: list[PlanetaryPosition]
    personal_impact: list[PersonalImpact] = Field(default_factory=list)


RESULT_MODELS: dict[str, type[BaseModel]] = {
    "horoscope": HoroscopeResult,
    "transits": TransitResult,
    "luck_score": LuckScoreResult,
    "do_dont": DoDontResult,
}
