"""
Taxonomie des erreurs du pipeline d'insights.

- ConfigurationError: aucune clé pour un fournisseur (on saute le fournisseur)
- TransientProviderError: 429/401/réseau (clé suivante, puis étape suivante)
- ProviderFatalError: autre statut non-2xx (fin de l'étape courante)
- MalformedResponseError: réponse structurée illisible (étape suivante, jamais de fabrication)
- StoreCorruptionError: entrée persistée illisible (traitée comme un miss)
- InsightUnavailableError: signal "réessayez plus tard" remonté à l'appelant
"""

from __future__ import annotations


class InsightError(Exception):
    """Erreur de base du pipeline."""


class ConfigurationError(InsightError):
    """Aucune clé configurée pour un fournisseur."""

    def __init__(self, provider: str) -> None:
        """Initialise l'erreur pour le fournisseur donné."""
        super().__init__(f"no credentials configured for provider '{provider}'")
        self.provider = provider


class ProviderError(InsightError):
    """Échec d'un appel fournisseur (statut HTTP optionnel)."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        """Initialise l'erreur avec fournisseur, message et statut."""
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class TransientProviderError(ProviderError):
    """Erreur récupérable avec une autre clé (quota, clé invalide, réseau)."""


class ProviderFatalError(ProviderError):
    """Erreur non récupérable pour cet appel: pas de nouvel essai sur ce fournisseur."""


class MalformedResponseError(InsightError):
    """Réponse structurée impossible à interpréter."""

    def __init__(self, feature: str, reason: str) -> None:
        """Initialise l'erreur avec la fonctionnalité et la raison."""
        super().__init__(f"malformed {feature} response: {reason}")
        self.feature = feature
        self.reason = reason


class StoreCorruptionError(InsightError):
    """Entrée de cache illisible."""

    def __init__(self, key: str, reason: str) -> None:
        """Initialise l'erreur avec la clé concernée."""
        super().__init__(f"corrupted cache entry '{key}': {reason}")
        self.key = key


class InsightUnavailableError(InsightError):
    """Toutes les étapes ont échoué: l'appelant affiche un message et propose de réessayer."""

    def __init__(self, feature: str, user_message: str) -> None:
        """Initialise le signal avec le message destiné à l'utilisateur."""
        super().__init__(user_message)
        self.feature = feature
        self.user_message = user_message
