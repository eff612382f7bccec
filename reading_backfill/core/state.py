from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional

from reading_backfill.io.utils import atomic_write_json, read_json

logger = logging.getLogger(__name__)

LAST_RUN_KEY = "reading-tracker-backfill-ts"
NO_DATA_KEY = "reading-tracker-backfill-nodata"


class MemoryKV:
    """In-process key-value slots. Values are plain strings."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value


class JsonFileKV(MemoryKV):
    """String slots persisted as one JSON object; every set() rewrites the file."""

    def __init__(self, path: str) -> None:
        raw = read_json(path, {})
        if not isinstance(raw, dict):
            raise ValueError(f"State file must hold a JSON object: {path}")
        super().__init__({str(k): str(v) for k, v in raw.items()})
        self.path = path

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            atomic_write_json(dict(self._data), self.path)


def _parse_no_data(raw: Optional[str]) -> Dict[str, int]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("negative cache unreadable; starting empty")
        return {}
    if not isinstance(data, dict):
        return {}
    out: Dict[str, int] = {}
    for k, v in data.items():
        try:
            out[str(k)] = int(v)
        except (TypeError, ValueError):
            continue
    return out


def _parse_last_run(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    try:
        return int(float(raw))
    except ValueError:
        return None


@dataclass
class BackfillContext:
    """
    Cross-run scheduler state: last run time and the negative-result cache.

    Loaded once at the start of a run, mutated in memory, flushed once at the
    end. Timestamps are epoch milliseconds.
    """

    last_run_ms: Optional[int] = None
    no_data: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def load(cls, kv) -> "BackfillContext":
        return cls(
            last_run_ms=_parse_last_run(kv.get(LAST_RUN_KEY)),
            no_data=_parse_no_data(kv.get(NO_DATA_KEY)),
        )

    def flush(self, kv, now_ms: int) -> None:
        self.last_run_ms = now_ms
        kv.set(NO_DATA_KEY, json.dumps(self.no_data, ensure_ascii=False))
        kv.set(LAST_RUN_KEY, str(now_ms))
