from __future__ import annotations

import logging
from typing import Any, List, Optional

import requests

from reading_backfill.core.models import EnrichmentResult
from reading_backfill.integrations.http_client import get_json, make_session

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"
QUOTA_STATUS = 429
SEARCH_MAX_RESULTS = 8


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if str(v).strip()]


def map_volume(item: dict) -> EnrichmentResult:
    info = item.get("volumeInfo") or {}
    image_links = info.get("imageLinks") or {}
    thumbnail = None
    if isinstance(image_links, dict):
        thumbnail = image_links.get("thumbnail") or image_links.get("smallThumbnail") or None
    try:
        page_count = int(info.get("pageCount") or 0)
    except (TypeError, ValueError):
        page_count = 0
    return EnrichmentResult(
        id=str(item.get("id") or ""),
        title=str(info.get("title") or ""),
        authors=_str_list(info.get("authors")),
        categories=_str_list(info.get("categories")),
        published_date=str(info.get("publishedDate") or ""),
        page_count=page_count,
        thumbnail=thumbnail,
        description=info.get("description") or None,
    )


class GoogleBooksClient:
    """
    Google Books volumes search.

    The API enforces a request quota; HTTP 429 surfaces as RateLimitError so the
    caller can stop spending requests. Every other failure status reads as
    "no results".
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        lang: str = "ja",
        timeout_s: float = 10.0,
        retries: int = 0,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.session = session or make_session()
        self.lang = lang
        self.timeout_s = timeout_s
        self.retries = retries

    def _volumes(self, params: dict, label: str) -> List[EnrichmentResult]:
        if self.api_key:
            params["key"] = self.api_key
        data = get_json(
            self.session,
            GOOGLE_BOOKS_URL,
            params=params,
            timeout_s=self.timeout_s,
            retries=self.retries,
            label=label,
            rate_limit_status=QUOTA_STATUS,
        )
        if not isinstance(data, dict):
            return []
        items = data.get("items") or []
        return [map_volume(it) for it in items if isinstance(it, dict)]

    def search_books(self, query: str) -> List[EnrichmentResult]:
        if not (query or "").strip():
            return []
        params = {
            "q": query,
            "maxResults": str(SEARCH_MAX_RESULTS),
            "langRestrict": self.lang,
            "printType": "books",
        }
        results = self._volumes(params, "GoogleBooksSearch")
        logger.debug("google search | q=%s | hits=%s", query, len(results))
        return results

    def search_by_isbn(self, isbn: str) -> Optional[EnrichmentResult]:
        params = {
            "q": f"isbn:{isbn}",
            "maxResults": "1",
            "printType": "books",
        }
        results = self._volumes(params, "GoogleBooksIsbn")
        return results[0] if results else None
