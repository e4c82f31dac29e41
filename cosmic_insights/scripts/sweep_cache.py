"""Purge manuelle du cache d'insights.

Supprime les entrées dont la date n'est ni la date de référence ni la veille.

Usage:
  python -m cosmic_insights.scripts.sweep_cache [--today YYYY-MM-DD] [--dry-run]
"""

from __future__ import annotations

import argparse
import datetime as dt
from datetime import timedelta

from cosmic_insights.core.logging import setup_logging
from cosmic_insights.core.settings import get_settings
from cosmic_insights.domain.cache_keys import CacheKey
from cosmic_insights.infra.cache_store import build_store


def main(argv: list[str] | None = None) -> int:
    """Point d'entrée: purge (ou liste en `--dry-run`) les entrées périmées."""
    parser = argparse.ArgumentParser(description="Sweep stale daily insight cache entries")
    parser.add_argument(
        "--today",
        type=dt.date.fromisoformat,
        default=None,
        help="Reference date (YYYY-MM-DD), defaults to the local date",
    )
    parser.add_argument("--dry-run", action="store_true", help="Only count stale entries")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    store, backend = build_store(settings)
    today = args.today or dt.date.today()

    if args.dry_run:
        keep = {today, today - timedelta(days=1)}
        removed = sum(1 for k in store.keys() if CacheKey.day_of(k) not in keep)
    else:
        removed = store.sweep(today)
    print(f"backend={backend} stale={removed} dry_run={args.dry_run}")
    return removed


if __name__ == "__main__":  # pragma: no cover - script entry
    main()
