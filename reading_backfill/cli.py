# reading_backfill/cli.py
from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from rich.logging import RichHandler

from .config import load_config, load_dotenv
from .core.state import JsonFileKV
from .core.store import RecordStore
from .enrich.backfill import run_backfill
from .enrich.lookup import BookLookup
from .integrations.google_books import GoogleBooksClient


LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def main(argv: Optional[List[str]] = None) -> None:
    logger = logging.getLogger(__name__)
    ap = argparse.ArgumentParser(
        prog="reading-backfill",
        description="Fill missing page counts, dates, covers and descriptions in a reading-tracker library",
    )
    ap.add_argument("--library", default=None, help="Library JSON (array of book records)")
    ap.add_argument("--state", default=None, help="Scheduler state JSON (last run + negative cache)")
    ap.add_argument("--settings", default=None, help="YAML settings override (cooldown, caps, pacing, lang)")
    ap.add_argument("--force", action="store_true", help="Ignore the once-per-day cooldown")
    ap.add_argument("--log-level", default="info", help="Log level: debug, info, warning, error")

    args = ap.parse_args(argv)

    level = LOG_LEVELS.get(args.log_level.lower(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    used = load_dotenv(".env")
    if used:
        logger.info("loaded .env: %s", used)
    else:
        logger.debug(".env not found; relying on existing environment variables")

    cfg = load_config(args.settings)
    library_path = args.library or cfg.library_path
    state_path = args.state or cfg.state_path

    try:
        store = RecordStore.load(library_path)
        kv = JsonFileKV(state_path)
    except ValueError as e:
        raise SystemExit(str(e)) from e

    logger.info("Library: %s (%s records)", library_path, len(store.list()))
    logger.info("State: %s", state_path)
    if not cfg.google_api_key:
        logger.info("GOOGLE_BOOKS_API_KEY not set; using the anonymous Google Books quota")

    google = GoogleBooksClient(
        cfg.google_api_key,
        lang=cfg.lang,
        timeout_s=cfg.timeout_s,
        retries=cfg.retries,
    )
    lookup = BookLookup(google, timeout_s=cfg.timeout_s, retries=cfg.retries)

    report = run_backfill(store, kv, lookup, config=cfg, force=args.force)
    if report.skipped:
        logger.info("Nothing to do: last run was less than %sh ago.", cfg.cooldown_hours)
        return
    logger.info(
        "Updated %s records (%s via ISBN, %s via title search).",
        report.phase1_updated + report.phase2_updated,
        report.phase1_updated,
        report.phase2_updated,
    )


if __name__ == "__main__":
    main()
