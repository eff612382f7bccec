from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from reading_backfill.core.genre import is_known_genre, map_category_to_genre
from reading_backfill.core.models import RECORD_JSON_KEYS, BookRecord
from reading_backfill.io.utils import atomic_write_json, read_json

logger = logging.getLogger(__name__)

_MANAGED_FIELDS = {"id", "created_at", "updated_at"}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def migrate_raw_books(raw_books: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], bool]:
    """
    Bring older library blobs up to the current record shape.

    Returns the (mutated) list and whether anything changed, so callers only
    write back when needed.
    """
    migrated = False
    for book in raw_books:
        if book.get("status") == "unread":
            book["status"] = "tsundoku"
            migrated = True
        if "publishedYear" in book and "publishedDate" not in book:
            book["publishedDate"] = str(book.pop("publishedYear") or "")
            migrated = True
        for key, empty in (
            ("publishedDate", ""),
            ("purchaseUrl", ""),
            ("thumbnail", None),
            ("description", ""),
            ("pageCount", 0),
        ):
            if key not in book:
                book[key] = empty
                migrated = True
        genre = book.get("genre") or ""
        if genre and not is_known_genre(genre):
            mapped = map_category_to_genre([genre])
            if is_known_genre(mapped):
                book["genre"] = mapped
                migrated = True
    return raw_books, migrated


class RecordStore:
    """
    Thread-safe book record store backed by one JSON array on disk.

    Each mutation rewrites the whole blob. With path=None the store is purely
    in memory, which is what the tests use.
    """

    def __init__(
        self,
        records: Optional[List[BookRecord]] = None,
        *,
        path: Optional[str] = None,
        now_iso: Callable[[], str] = utc_now_iso,
    ) -> None:
        self._lock = threading.Lock()
        self._records: List[BookRecord] = list(records or [])
        self._path = path
        self._now_iso = now_iso

    @classmethod
    def load(cls, path: str, *, now_iso: Callable[[], str] = utc_now_iso) -> "RecordStore":
        raw = read_json(path, [])
        if not isinstance(raw, list):
            raise ValueError(f"Library file must hold a JSON array: {path}")
        raw_books = [b for b in raw if isinstance(b, dict)]
        raw_books, migrated = migrate_raw_books(raw_books)
        store = cls([BookRecord.from_json(b) for b in raw_books], path=path, now_iso=now_iso)
        if migrated:
            logger.info("library migrated | path=%s | records=%s", path, len(raw_books))
            store.save()
        return store

    def list(self) -> List[BookRecord]:
        with self._lock:
            return list(self._records)

    def patch(self, record_id: str, fields: Dict[str, Any]) -> Optional[BookRecord]:
        unknown = set(fields) - set(RECORD_JSON_KEYS)
        if unknown:
            raise KeyError(f"Unknown record fields: {sorted(unknown)}")
        changes = {k: v for k, v in fields.items() if k not in _MANAGED_FIELDS}
        with self._lock:
            for i, rec in enumerate(self._records):
                if rec.id != record_id:
                    continue
                updated = replace(rec, **changes, updated_at=self._now_iso())
                records = list(self._records)
                records[i] = updated
                # memory only changes once the write has succeeded
                self._write(records)
                self._records = records
                return updated
        return None

    def save(self) -> None:
        with self._lock:
            self._write(self._records)

    def _write(self, records: List[BookRecord]) -> None:
        if not self._path:
            return
        atomic_write_json([r.to_json() for r in records], self._path)
