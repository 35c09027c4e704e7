"""
Periodic scrape-then-process loop.

Usage:
  - One cycle (cron-friendly): python -m autoapply.scheduler --once
  - Background loop every ``job_search.scrape_interval`` hours, while
    ``job_search.auto_scrape`` is enabled: python -m autoapply.scheduler
"""
from __future__ import annotations

import sys
import time
from datetime import datetime, timedelta

from autoapply.config import ensure_dirs, read_config
from autoapply.errors import ConfigurationError
from autoapply.log import get_logger
from autoapply.models import COMPLETED, FAILED
from autoapply.processor import process_all
from autoapply.sources import scrape_and_import
from autoapply.store import JobStore

log = get_logger(__name__)

DISABLED_POLL_SECONDS = 3600


def run_cycle(config: dict | None = None, store: JobStore | None = None) -> dict[str, int]:
    config = config if config is not None else read_config()
    store = store or JobStore()

    added = scrape_and_import(config=config, store=store)
    processed = process_all(config, store)
    summary = {
        "jobs_added": len(added),
        "processed": len(processed),
        "completed": sum(1 for j in processed if j.status == COMPLETED),
        "failed": sum(1 for j in processed if j.status == FAILED),
    }
    log.info(
        "Cycle complete — added=%d, processed=%d, completed=%d, failed=%d",
        summary["jobs_added"], summary["processed"], summary["completed"], summary["failed"],
    )
    return summary


def interval_hours(config: dict) -> float:
    try:
        hours = float((config.get("job_search") or {}).get("scrape_interval", 24))
    except (TypeError, ValueError):
        hours = 24.0
    return max(hours, 0.25)


def main() -> None:
    ensure_dirs()
    while True:
        # settings are re-read every cycle so edits apply without a restart
        config = read_config()
        if not (config.get("job_search") or {}).get("auto_scrape"):
            log.info("Auto-scrape disabled; checking again in %d min", DISABLED_POLL_SECONDS // 60)
            time.sleep(DISABLED_POLL_SECONDS)
            continue

        try:
            run_cycle(config)
        except ConfigurationError as exc:
            log.error("Cycle aborted: %s", exc)

        hours = interval_hours(config)
        log.info("Next run at %s (in %.1f hours)", datetime.now() + timedelta(hours=hours), hours)
        time.sleep(hours * 3600)


if __name__ == "__main__":
    if "--once" in sys.argv:
        ensure_dirs()
        run_cycle()
        sys.exit(0)
    main()
