"""
Pool de clés API par fournisseur avec rotation round-robin.

Résolution de la configuration (par fournisseur):
1) slot pluriel CSV (ex: `PERPLEXITY_API_KEYS=k1,k2`)
2) sinon slot simple, lui aussi éventuellement CSV (ex: `PERPLEXITY_API_KEY=k1`)

Les entrées vides ou composées d'espaces sont ignorées. Le curseur de rotation vit en mémoire
(il repart de zéro au redémarrage du processus).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from cosmic_insights.core.constants import PROVIDER_KEY_SLOTS


def parse_key_list(value: str | None) -> list[str]:
    """Découpe une liste CSV de clés en ignorant les entrées vides."""
    if not value or not isinstance(value, str):
        return []
    return [k.strip() for k in value.split(",") if k.strip()]


class KeyPool:
    """Listes de clés par fournisseur, chacune avec son propre curseur."""

    def __init__(self, keys: Mapping[str, Sequence[str]] | None = None) -> None:
        """Initialise le pool à partir d'un mapping fournisseur -> clés."""
        self._keys: dict[str, list[str]] = {
            provider: [k.strip() for k in values if k and k.strip()]
            for provider, values in (keys or {}).items()
        }
        self._cursors: dict[str, int] = {provider: 0 for provider in self._keys}

    @classmethod
    def from_settings(
        cls,
        settings,
        slots: Mapping[str, tuple[str, str]] = PROVIDER_KEY_SLOTS,
    ) -> KeyPool:
        """Construit le pool depuis les slots de configuration (pluriel > simple)."""
        keys: dict[str, list[str]] = {}
        for provider, (plural_slot, single_slot) in slots.items():
            parsed = parse_key_list(getattr(settings, plural_slot, None))
            if not parsed:
                parsed = parse_key_list(getattr(settings, single_slot, None))
            keys[provider] = parsed
        return cls(keys)

    def next_key(self, provider: str) -> str:
        """Clé suivante (round-robin); chaîne vide si le fournisseur n'est pas configuré."""
        keys = self._keys.get(provider) or []
        if not keys:
            return ""
        cursor = self._cursors.get(provider, 0) % len(keys)
        self._cursors[provider] = (cursor + 1) % len(keys)
        return keys[cursor]

    def all_keys(self, provider: str) -> list[str]:
        """Copie de la liste complète des clés configurées."""
        return list(self._keys.get(provider) or [])

    def rotation(self, provider: str) -> list[str]:
        """Toutes les clés, en commençant par `next_key()` (le curseur avance une seule fois)."""
        keys = self.all_keys(provider)
        if not keys:
            return []
        start = self._cursors.get(provider, 0) % len(keys)
        self.next_key(provider)
        return keys[start:] + keys[:start]

    def has_keys(self, provider: str) -> bool:
        return bool(self._keys.get(provider))
