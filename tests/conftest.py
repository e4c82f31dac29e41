"""Configuration de test pour pytest avec gestion des chemins.

Ajoute la racine du projet au sys.path, force le store mémoire et isole les clés fournisseurs
de l'environnement du développeur.
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from cosmic_insights...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Le conteneur est construit à l'import de l'API: pas de fichier de cache ni de Redis en test
os.environ.setdefault("INSIGHT_STORE_BACKEND", "memory")
os.environ.setdefault("CACHE_SWEEP_ENABLED", "false")

KEY_SLOTS = (
    "PERPLEXITY_API_KEYS",
    "PERPLEXITY_API_KEY",
    "GEMINI_API_KEYS",
    "GEMINI_API_KEY",
)


@pytest.fixture(autouse=True)
def isolate_provider_keys(monkeypatch):
    """Aucune vraie clé ne doit fuiter dans les tests."""
    for name in KEY_SLOTS:
        monkeypatch.delenv(name, raising=False)
    yield
