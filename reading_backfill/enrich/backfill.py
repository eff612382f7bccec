"""
Daily backfill of missing book metadata.

One run = cooldown check, then two sequential phases, then persist:

  Phase 1  ISBN lookups (registry + search merged) for records whose retailer
           URL carries an ISBN. The registry has no quota, so every eligible
           record is tried.
  Phase 2  title/author keyword search for whatever is still incomplete,
           capped per run and paced, because the search API has a quota.

Records that yield nothing new are parked in a 7-day negative cache. A quota
hit stops the run's lookups but is never cached, so the next run retries.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from reading_backfill.config import BackfillConfig
from reading_backfill.core.models import BackfillReport, BookRecord, EnrichmentResult
from reading_backfill.core.state import BackfillContext
from reading_backfill.core.store import RecordStore
from reading_backfill.enrich.candidates import (
    mark_no_data,
    purge_expired,
    select_isbn_candidates,
    select_title_candidates,
    title_query,
)
from reading_backfill.enrich.lookup import Found, LookupOutcome, NotFound, RateLimited
from reading_backfill.enrich.patch import build_patch

logger = logging.getLogger(__name__)


def epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class _PhaseTally:
    candidates: int = 0
    updated: int = 0
    rate_limited: bool = False
    marked: int = 0
    errors: int = 0


class BackfillRunner:
    def __init__(
        self,
        store: RecordStore,
        kv,
        lookup,
        *,
        config: Optional[BackfillConfig] = None,
        clock: Callable[[], int] = epoch_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.kv = kv
        self.lookup = lookup
        self.config = config or BackfillConfig()
        self.clock = clock
        self.sleep = sleep

    def run(self, *, force: bool = False) -> BackfillReport:
        ctx = BackfillContext.load(self.kv)
        now = self.clock()

        if not force and ctx.last_run_ms is not None and now - ctx.last_run_ms < self.config.cooldown_ms:
            logger.info("backfill skipped | cooldown | last_run_ms=%s", ctx.last_run_ms)
            return BackfillReport(skipped=True)

        purged = purge_expired(ctx.no_data, now, self.config.no_data_ttl_ms)
        if purged:
            logger.debug("negative cache purged | entries=%s", purged)

        p1 = _PhaseTally()
        p2 = _PhaseTally()
        try:
            p1 = self._phase_isbn(ctx, now)
            if p1.rate_limited:
                logger.warning("backfill: quota hit during ISBN phase; skipping title search")
            else:
                p2 = self._phase_title(ctx, now)
        finally:
            ctx.flush(self.kv, self.clock())

        report = BackfillReport(
            phase1_candidates=p1.candidates,
            phase1_updated=p1.updated,
            phase1_rate_limited=p1.rate_limited,
            phase2_candidates=p2.candidates,
            phase2_updated=p2.updated,
            phase2_rate_limited=p2.rate_limited,
            marked_no_data=p1.marked + p2.marked,
            errors=p1.errors + p2.errors,
        )
        logger.info(
            "backfill done | isbn=%s/%s | title=%s/%s | no_data=%s | errors=%s | rate_limited=%s",
            report.phase1_updated,
            report.phase1_candidates,
            report.phase2_updated,
            report.phase2_candidates,
            report.marked_no_data,
            report.errors,
            report.phase1_rate_limited or report.phase2_rate_limited,
        )
        return report

    def _apply(self, ctx: BackfillContext, record: BookRecord, outcome: LookupOutcome, now: int, tally: _PhaseTally) -> None:
        if isinstance(outcome, NotFound):
            mark_no_data(ctx.no_data, record.id, now)
            tally.marked += 1
            return
        if not isinstance(outcome, Found):
            return
        result: EnrichmentResult = outcome.result
        patch = build_patch(record, result)
        if not patch:
            # looked up fine, nothing left to learn
            mark_no_data(ctx.no_data, record.id, now)
            tally.marked += 1
            return
        try:
            updated = self.store.patch(record.id, patch)
        except OSError as e:
            tally.errors += 1
            logger.warning("record write failed | id=%s | err=%r", record.id, e)
            return
        if updated is None:
            logger.debug("record vanished before patch | id=%s", record.id)
            return
        tally.updated += 1
        logger.debug("record updated | id=%s | source=%s | fields=%s", record.id, result.id, sorted(patch))

    def _phase_isbn(self, ctx: BackfillContext, now: int) -> _PhaseTally:
        tally = _PhaseTally()
        candidates = select_isbn_candidates(
            self.store.list(), ctx.no_data, now, ttl_ms=self.config.no_data_ttl_ms
        )
        tally.candidates = len(candidates)
        logger.info("backfill isbn phase | candidates=%s", tally.candidates)
        for record, isbn in candidates:
            try:
                outcome = self.lookup.lookup_isbn(isbn)
            except Exception as e:
                tally.errors += 1
                logger.debug("isbn lookup failed | id=%s | isbn=%s | err=%r", record.id, isbn, e)
                continue
            if isinstance(outcome, RateLimited):
                tally.rate_limited = True
                logger.warning("isbn phase stopped | quota | id=%s | reason=%s", record.id, outcome.reason)
                break
            self._apply(ctx, record, outcome, now, tally)
        return tally

    def _phase_title(self, ctx: BackfillContext, now: int) -> _PhaseTally:
        tally = _PhaseTally()
        candidates = select_title_candidates(
            self.store.list(),
            ctx.no_data,
            now,
            limit=self.config.max_title_searches,
            ttl_ms=self.config.no_data_ttl_ms,
        )
        tally.candidates = len(candidates)
        logger.info("backfill title phase | candidates=%s", tally.candidates)
        pause_s = self.config.pacing_ms / 1000.0
        for record in candidates:
            try:
                outcome = self.lookup.search_title(title_query(record))
            except Exception as e:
                tally.errors += 1
                logger.debug("title search failed | id=%s | err=%r", record.id, e)
                self.sleep(pause_s)
                continue
            if isinstance(outcome, RateLimited):
                tally.rate_limited = True
                logger.warning("title phase stopped | quota | id=%s | reason=%s", record.id, outcome.reason)
                break
            self._apply(ctx, record, outcome, now, tally)
            self.sleep(pause_s)
        return tally


def run_backfill(
    store: RecordStore,
    kv,
    lookup,
    *,
    config: Optional[BackfillConfig] = None,
    clock: Callable[[], int] = epoch_ms,
    sleep: Callable[[float], None] = time.sleep,
    force: bool = False,
) -> BackfillReport:
    runner = BackfillRunner(store, kv, lookup, config=config, clock=clock, sleep=sleep)
    return runner.run(force=force)
