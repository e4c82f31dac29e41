"""
Tests pour la résolution des variables d'environnement.

Vérifie le chargement d'un fichier .env explicite (ENV_FILE) et la construction du pool de clés
depuis les slots de configuration.
"""

from __future__ import annotations

import importlib
from pathlib import Path

from cosmic_insights.infra.keys import KeyPool

TIMEOUT_SECONDS = 12.5


def test_settings_reads_env_file(tmp_path: Path, monkeypatch) -> None:
    """Les valeurs d'un fichier .env personnalisé sont appliquées aux settings."""
    env = tmp_path / ".env.custom"
    env.write_text(
        "PERPLEXITY_API_KEYS=p1, p2\nGEMINI_API_KEY=g1\n"
        "PROVIDER_TIMEOUT_SECONDS=12.5\nLUCKY_NUMBER_DEFAULT=random\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ENV_FILE", str(env))

    settings_mod = importlib.import_module("cosmic_insights.core.settings")
    importlib.reload(settings_mod)
    try:
        s = settings_mod.get_settings()
        assert s.PROVIDER_TIMEOUT_SECONDS == TIMEOUT_SECONDS
        assert s.LUCKY_NUMBER_DEFAULT == "random"

        pool = KeyPool.from_settings(s)
        assert pool.all_keys("perplexity") == ["p1", "p2"]
        assert pool.all_keys("gemini") == ["g1"]
    finally:
        monkeypatch.delenv("ENV_FILE")
        importlib.reload(settings_mod)


def test_environment_overrides_defaults(monkeypatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEYS", "a,b,,c")
    monkeypatch.setenv("INSIGHT_STORE_BACKEND", "memory")
    from cosmic_insights.core.settings import Settings

    s = Settings()
    assert s.INSIGHT_STORE_BACKEND == "memory"
    assert KeyPool.from_settings(s).all_keys("gemini") == ["a", "b", "c"]
