from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from reading_backfill.core.models import BookRecord
from reading_backfill.core.normalize import is_low_precision_date
from reading_backfill.core.retailer import extract_asin, is_amazon_url, is_likely_isbn

ONE_DAY_MS = 24 * 60 * 60 * 1000
NO_DATA_TTL_MS = 7 * ONE_DAY_MS
MAX_TITLE_SEARCHES = 30


def is_missing_data(record: BookRecord) -> bool:
    return (
        not record.page_count
        or not record.published_date
        or is_low_precision_date(record.published_date)
        or not record.thumbnail
        or not record.description
    )


def should_skip(no_data: Dict[str, int], record_id: str, now_ms: int, ttl_ms: int = NO_DATA_TTL_MS) -> bool:
    ts = no_data.get(record_id)
    return ts is not None and now_ms - ts < ttl_ms


def purge_expired(no_data: Dict[str, int], now_ms: int, ttl_ms: int = NO_DATA_TTL_MS) -> int:
    expired = [rid for rid, ts in no_data.items() if now_ms - ts >= ttl_ms]
    for rid in expired:
        del no_data[rid]
    return len(expired)


def mark_no_data(no_data: Dict[str, int], record_id: str, now_ms: int) -> None:
    no_data[record_id] = now_ms


def isbn_for_record(record: BookRecord) -> Optional[str]:
    if not is_amazon_url(record.purchase_url):
        return None
    asin = extract_asin(record.purchase_url)
    if not asin or not is_likely_isbn(asin):
        return None
    return asin


def select_isbn_candidates(
    records: Iterable[BookRecord],
    no_data: Dict[str, int],
    now_ms: int,
    *,
    ttl_ms: int = NO_DATA_TTL_MS,
) -> List[Tuple[BookRecord, str]]:
    out: List[Tuple[BookRecord, str]] = []
    for rec in records:
        if should_skip(no_data, rec.id, now_ms, ttl_ms):
            continue
        isbn = isbn_for_record(rec)
        if not isbn or not is_missing_data(rec):
            continue
        out.append((rec, isbn))
    return out


def select_title_candidates(
    records: Iterable[BookRecord],
    no_data: Dict[str, int],
    now_ms: int,
    *,
    limit: int = MAX_TITLE_SEARCHES,
    ttl_ms: int = NO_DATA_TTL_MS,
) -> List[BookRecord]:
    out = [
        rec
        for rec in records
        if rec.title and is_missing_data(rec) and not should_skip(no_data, rec.id, now_ms, ttl_ms)
    ]
    return out[: max(0, limit)]


def title_query(record: BookRecord) -> str:
    return " ".join(p for p in (record.title, record.author) if p)
