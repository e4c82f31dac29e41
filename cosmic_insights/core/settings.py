"""Définition et chargement des paramètres de configuration du pipeline d'insights.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
- Exposer les "slots" de clés par fournisseur (liste plurielle prioritaire sur le slot simple)
"""

import os
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "cosmic-insights"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Slots de clés (CSV). Le slot pluriel est prioritaire sur le slot simple.
    PERPLEXITY_API_KEYS: str | None = None
    PERPLEXITY_API_KEY: str | None = None
    GEMINI_API_KEYS: str | None = None
    GEMINI_API_KEY: str | None = None

    # Fournisseurs
    PERPLEXITY_BASE_URL: str = "https://api.perplexity.ai"
    PERPLEXITY_MODEL: str = "sonar"
    GEMINI_MODEL: str = "gemini-2.0-flash"
    PROVIDER_TIMEOUT_SECONDS: float = 30.0
    PROVIDER_CONNECT_TIMEOUT_SECONDS: float = 5.0

    # Cache journalier
    INSIGHT_STORE_BACKEND: Literal["memory", "file", "redis"] = "file"
    INSIGHT_STORE_PATH: str = ".cache/insights.json"
    REDIS_URL: str | None = None
    REQUIRE_REDIS: bool = False
    CACHE_SWEEP_ENABLED: bool = True

    # Politique de valeurs par défaut du parseur
    LUCKY_NUMBER_DEFAULT: Literal["date_seeded", "random"] = "date_seeded"


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
