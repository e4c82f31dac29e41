"""
Stockage des insights journaliers (clé -> charge utile JSON).

Objectif du module
------------------
- Trois backends interchangeables: mémoire (tests/dev), fichier JSON (persistant, par défaut)
  et Redis (partagé entre processus).
- Une entrée illisible ou invalide est traitée comme absente: jamais d'erreur côté appelant.
- Un échec d'écriture est journalisé puis ignoré: le résultat calculé reste servi.
- Pas de TTL: `sweep(today)` supprime les entrées dont la date n'est ni aujourd'hui ni hier.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Any, TypeVar

import redis
import structlog
from pydantic import BaseModel, ValidationError

from cosmic_insights.app.metrics import INSIGHT_CACHE_SWEPT, INSIGHT_STORE_ERRORS
from cosmic_insights.domain.cache_keys import CacheKey
from cosmic_insights.domain.errors import StoreCorruptionError

log = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class InsightStore(ABC):
    """Interface commune: lecture typée, écriture tolérante, purge par date."""

    backend: str

    @abstractmethod
    def _read(self, key: str) -> Any | None:
        """Charge la valeur brute décodée (None si absente)."""

    @abstractmethod
    def _write(self, key: str, payload: dict[str, Any]) -> None:
        """Persiste la charge utile sérialisable."""

    @abstractmethod
    def keys(self) -> list[str]:
        """Liste les clés présentes."""

    @abstractmethod
    def delete(self, keys: list[str]) -> None:
        """Supprime les clés données."""

    def get(self, key: str, model: type[M]) -> M | None:
        """Renvoie l'entrée validée par `model`, ou None (absente ou corrompue)."""
        try:
            raw = self._read(key)
            if raw is None:
                return None
            if not isinstance(raw, dict):
                raise StoreCorruptionError(key, "entry is not an object")
            try:
                return model.model_validate(raw)
            except ValidationError as exc:
                raise StoreCorruptionError(key, "schema mismatch") from exc
        except StoreCorruptionError as exc:
            INSIGHT_STORE_ERRORS.labels(self.backend, "read").inc()
            log.warning("insight_store_corrupted", backend=self.backend, key=key, error=str(exc))
            return None
        except (OSError, redis.RedisError) as exc:
            INSIGHT_STORE_ERRORS.labels(self.backend, "read").inc()
            log.warning("insight_store_read_failed", backend=self.backend, key=key, error=str(exc))
            return None

    def set(self, key: str, value: BaseModel) -> None:
        """Écrit la valeur (camelCase); un échec est journalisé sans être propagé."""
        payload = value.model_dump(mode="json", by_alias=True)
        try:
            self._write(key, payload)
        except (OSError, TypeError, ValueError, redis.RedisError) as exc:
            INSIGHT_STORE_ERRORS.labels(self.backend, "write").inc()
            log.warning("insight_store_write_failed", backend=self.backend, key=key, error=str(exc))

    def sweep(self, today: date) -> int:
        """Supprime les entrées hors [hier, aujourd'hui] (et les clés illisibles)."""
        keep = {today, today - timedelta(days=1)}
        try:
            stale = [k for k in self.keys() if CacheKey.day_of(k) not in keep]
            if stale:
                self.delete(stale)
        except (OSError, UnicodeDecodeError, redis.RedisError) as exc:
            INSIGHT_STORE_ERRORS.labels(self.backend, "sweep").inc()
            log.warning("insight_store_sweep_failed", backend=self.backend, error=str(exc))
            return 0
        if stale:
            INSIGHT_CACHE_SWEPT.labels(self.backend).inc(len(stale))
        log.info("insight_store_swept", backend=self.backend, removed=len(stale))
        return len(stale)


class InMemoryInsightStore(InsightStore):
    """Store en mémoire (non persistant), utilisé pour les tests et le dev."""

    backend = "memory"

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._db: dict[str, str] = {}

    def _read(self, key: str) -> Any | None:
        raw = self._db.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreCorruptionError(key, "invalid JSON") from exc

    def _write(self, key: str, payload: dict[str, Any]) -> None:
        # sérialisé pour garder la même sémantique que les backends persistants
        self._db[key] = json.dumps(payload, ensure_ascii=False)

    def keys(self) -> list[str]:
        return list(self._db)

    def delete(self, keys: list[str]) -> None:
        for key in keys:
            self._db.pop(key, None)


class FileInsightStore(InsightStore):
    """Store adossé à un fichier JSON unique `{clé: charge utile}`.

    L'écriture passe par un fichier temporaire puis `os.replace` (atomique): un lecteur voit
    soit l'ancien contenu, soit le nouveau. Un fichier entièrement illisible est traité comme vide.
    """

    backend = "file"

    def __init__(self, path: str):
        """Mémorise le chemin; le répertoire parent est créé à la première écriture."""
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            INSIGHT_STORE_ERRORS.labels(self.backend, "load").inc()
            log.warning("insight_store_file_unreadable", path=self.path, error=str(exc))
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, Any]) -> None:
        parent = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(parent, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=parent, prefix=".insights-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def _read(self, key: str) -> Any | None:
        return self._load().get(key)

    def _write(self, key: str, payload: dict[str, Any]) -> None:
        with self._lock:
            data = self._load()
            data[key] = payload
            self._dump(data)

    def keys(self) -> list[str]:
        return list(self._load())

    def delete(self, keys: list[str]) -> None:
        with self._lock:
            data = self._load()
            for key in keys:
                data.pop(key, None)
            self._dump(data)


class RedisInsightStore(InsightStore):
    """Store adossé à Redis (clé: `insight:{clé}`), sans expiration."""

    backend = "redis"

    def __init__(self, url: str, prefix: str = "insight:", client: redis.Redis | None = None):
        """Crée un client Redis à partir de l'URL fournie (ou utilise `client`)."""
        self.client = client or redis.Redis.from_url(url, decode_responses=True)
        self.prefix = prefix

    def _read(self, key: str) -> Any | None:
        try:
            # decode_responses=True: des octets non UTF-8 échouent dès la lecture
            raw = self.client.get(self.prefix + key)
            if not raw:
                return None
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise StoreCorruptionError(key, "invalid JSON") from exc

    def _write(self, key: str, payload: dict[str, Any]) -> None:
        self.client.set(self.prefix + key, json.dumps(payload, ensure_ascii=False))

    def keys(self) -> list[str]:
        return [k[len(self.prefix):] for k in self.client.scan_iter(match=f"{self.prefix}*")]

    def delete(self, keys: list[str]) -> None:
        if keys:
            self.client.delete(*(self.prefix + k for k in keys))


def build_store(settings) -> tuple[InsightStore, str]:
    """Construit le store configuré; Redis indisponible -> mémoire (sauf REQUIRE_REDIS).

    Retourne le store et le nom effectif du backend (`memory-fallback` en cas de repli).
    """
    backend = settings.INSIGHT_STORE_BACKEND
    if backend == "file":
        return FileInsightStore(settings.INSIGHT_STORE_PATH), "file"
    if backend != "redis":
        return InMemoryInsightStore(), "memory"
    if not settings.REDIS_URL:
        if settings.REQUIRE_REDIS:
            raise RuntimeError("Redis required but REDIS_URL not set")
        return InMemoryInsightStore(), "memory"
    try:
        store = RedisInsightStore(settings.REDIS_URL)
        store.client.ping()
        return store, "redis"
    except redis.RedisError as err:
        if settings.REQUIRE_REDIS:
            raise RuntimeError("Redis required but unavailable") from err
        log.warning("insight_store_redis_unavailable", error=str(err))
        return InMemoryInsightStore(), "memory-fallback"
