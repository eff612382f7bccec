import json

import pytest

from reading_backfill.core.models import BookRecord
from reading_backfill.core.state import (
    LAST_RUN_KEY,
    NO_DATA_KEY,
    BackfillContext,
    JsonFileKV,
    MemoryKV,
)
from reading_backfill.core.store import RecordStore, migrate_raw_books


def _raw_book(book_id: str, **overrides) -> dict:
    data = {
        "id": book_id,
        "title": "Title",
        "author": "Author",
        "genre": "",
        "publishedDate": "2020",
        "status": "tsundoku",
        "pageCount": 0,
        "rating": 0,
        "memo": "",
        "description": "",
        "thumbnail": None,
        "purchaseUrl": "",
        "finishedDate": None,
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-01T00:00:00.000Z",
    }
    data.update(overrides)
    return data


def test_migrate_legacy_fields() -> None:
    legacy = {"id": "1", "title": "T", "status": "unread", "publishedYear": "1999", "genre": "Computers"}
    books, migrated = migrate_raw_books([legacy])

    assert migrated
    book = books[0]
    assert book["status"] == "tsundoku"
    assert book["publishedDate"] == "1999"
    assert "publishedYear" not in book
    assert book["purchaseUrl"] == ""
    assert book["thumbnail"] is None
    assert book["description"] == ""
    assert book["pageCount"] == 0
    assert book["genre"] == "コンピュータ・IT"


def test_migrate_keeps_unmappable_genre_and_reports_clean_data() -> None:
    books, migrated = migrate_raw_books([_raw_book("1", genre="Xyzzy")])
    assert not migrated
    assert books[0]["genre"] == "Xyzzy"


def test_load_writes_back_migrated_library(tmp_path) -> None:
    path = tmp_path / "books.json"
    path.write_text(json.dumps([{"id": "1", "title": "T", "status": "unread"}]), encoding="utf-8")

    store = RecordStore.load(str(path))

    assert store.list()[0].status == "tsundoku"
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved[0]["status"] == "tsundoku"
    assert saved[0]["pageCount"] == 0
    assert saved[0]["thumbnail"] is None


def test_load_rejects_non_array(tmp_path) -> None:
    path = tmp_path / "books.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError):
        RecordStore.load(str(path))


def test_patch_updates_timestamp_and_persists(tmp_path) -> None:
    path = tmp_path / "books.json"
    path.write_text(json.dumps([_raw_book("1"), _raw_book("2")]), encoding="utf-8")
    store = RecordStore.load(str(path), now_iso=lambda: "2025-05-05T00:00:00.000Z")

    updated = store.patch("2", {"page_count": 250, "id": "hijack", "updated_at": "x"})

    assert isinstance(updated, BookRecord)
    assert updated.id == "2"
    assert updated.page_count == 250
    assert updated.updated_at == "2025-05-05T00:00:00.000Z"
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved[1]["pageCount"] == 250
    assert saved[0]["pageCount"] == 0


def test_patch_unknown_record_and_field() -> None:
    store = RecordStore([BookRecord.from_json(_raw_book("1"))])
    assert store.patch("missing", {"page_count": 1}) is None
    with pytest.raises(KeyError):
        store.patch("1", {"isbn": "x"})


def test_record_json_round_trip_uses_camel_case() -> None:
    rec = BookRecord.from_json(_raw_book("1", purchaseUrl="https://www.amazon.co.jp/dp/4774142042"))
    out = rec.to_json()
    assert out["purchaseUrl"] == "https://www.amazon.co.jp/dp/4774142042"
    assert out["publishedDate"] == "2020"
    assert set(out) == set(_raw_book("1"))


def test_context_load_and_flush() -> None:
    kv = MemoryKV({LAST_RUN_KEY: "1000", NO_DATA_KEY: json.dumps({"a": 5, "b": "bad"})})
    ctx = BackfillContext.load(kv)

    assert ctx.last_run_ms == 1000
    assert ctx.no_data == {"a": 5}

    ctx.no_data["c"] = 7
    ctx.flush(kv, 2000)
    assert kv.get(LAST_RUN_KEY) == "2000"
    assert json.loads(kv.get(NO_DATA_KEY)) == {"a": 5, "c": 7}


def test_context_tolerates_garbage() -> None:
    ctx = BackfillContext.load(MemoryKV({LAST_RUN_KEY: "soon", NO_DATA_KEY: "{not json"}))
    assert ctx.last_run_ms is None
    assert ctx.no_data == {}


def test_json_file_kv_persists(tmp_path) -> None:
    path = str(tmp_path / "state" / "backfill.json")
    kv = JsonFileKV(path)
    kv.set(LAST_RUN_KEY, "42")

    again = JsonFileKV(path)
    assert again.get(LAST_RUN_KEY) == "42"
    assert again.get(NO_DATA_KEY) is None


def test_failed_write_leaves_records_untouched(tmp_path) -> None:
    target = tmp_path / "books"
    target.mkdir()
    (target / "keep").write_text("x", encoding="utf-8")
    original = BookRecord.from_json(_raw_book("1"))
    store = RecordStore([original], path=str(target))

    with pytest.raises(OSError):
        store.patch("1", {"page_count": 250})

    assert store.list() == [original]
