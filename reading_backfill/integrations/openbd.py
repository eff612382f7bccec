"""
OpenBD client: ISBN registry for Japanese books.

No API key and no rate limit, but lookups are keyed by ISBN-13 only. The
response is ONIX-shaped; we pull page count, description, publication date
and a C-code genre out of it.
"""
from __future__ import annotations

import logging
import re
from typing import Any, List, Optional

import requests

from reading_backfill.core.genre import genre_from_ccode
from reading_backfill.core.models import EnrichmentResult
from reading_backfill.core.normalize import format_pubdate, is_valid_isbn13, strip_markup, to_isbn13
from reading_backfill.integrations.http_client import get_json, make_session

logger = logging.getLogger(__name__)

OPENBD_URL = "https://api.openbd.jp/v1/get"

EXTENT_TYPE_PAGES = "11"
TEXT_TYPE_LONG = "03"
TEXT_TYPE_SHORT = "02"

_LEADING_INT_RE = re.compile(r"\d+")


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _page_count(extents: List[Any]) -> int:
    for e in extents:
        if isinstance(e, dict) and e.get("ExtentType") == EXTENT_TYPE_PAGES:
            m = _LEADING_INT_RE.match(str(e.get("ExtentValue") or "").strip())
            return int(m.group(0)) if m else 0
    return 0


def _description(texts: List[Any]) -> Optional[str]:
    for wanted in (TEXT_TYPE_LONG, TEXT_TYPE_SHORT):
        for t in texts:
            if isinstance(t, dict) and t.get("TextType") == wanted:
                return strip_markup(t.get("Text") or "")
    return None


def parse_openbd_book(book: Any, isbn13: str) -> Optional[EnrichmentResult]:
    if not isinstance(book, dict):
        return None
    summary = book.get("summary")
    if not isinstance(summary, dict) or not summary.get("title"):
        return None
    onix = book.get("onix") if isinstance(book.get("onix"), dict) else {}
    detail = onix.get("DescriptiveDetail") if isinstance(onix.get("DescriptiveDetail"), dict) else {}
    collateral = onix.get("CollateralDetail") if isinstance(onix.get("CollateralDetail"), dict) else {}

    genre = genre_from_ccode(_as_list(detail.get("Subject")))
    author = str(summary.get("author") or "")
    return EnrichmentResult(
        id=f"openbd-{isbn13}",
        title=str(summary["title"]),
        authors=[author] if author else [],
        categories=[genre] if genre else [],
        published_date=format_pubdate(str(summary.get("pubdate") or "")),
        page_count=_page_count(_as_list(detail.get("Extent"))),
        thumbnail=summary.get("cover") or None,
        description=_description(_as_list(collateral.get("TextContent"))),
    )


def search_by_isbn_openbd(
    isbn: str,
    *,
    session: Optional[requests.Session] = None,
    timeout_s: float = 10.0,
    retries: int = 0,
) -> Optional[EnrichmentResult]:
    """Look up one ISBN (10 or 13 digits, hyphens allowed). None when unknown."""
    isbn13 = to_isbn13(isbn)
    if not is_valid_isbn13(isbn13):
        logger.debug("openbd skipped | bad isbn=%s", isbn)
        return None
    session = session or make_session()
    data = get_json(
        session,
        OPENBD_URL,
        params={"isbn": isbn13},
        timeout_s=timeout_s,
        retries=retries,
        label="OpenBD",
    )
    if not isinstance(data, list) or not data:
        return None
    result = parse_openbd_book(data[0], isbn13)
    logger.debug("openbd | isbn=%s | found=%s", isbn13, result is not None)
    return result
