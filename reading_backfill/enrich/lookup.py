from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, Optional, Union

import requests

from reading_backfill.core.models import EnrichmentResult
from reading_backfill.core.normalize import is_more_precise_date
from reading_backfill.integrations.google_books import GoogleBooksClient
from reading_backfill.integrations.http_client import RateLimitError, make_session
from reading_backfill.integrations.openbd import search_by_isbn_openbd

logger = logging.getLogger(__name__)

ResultFetcher = Callable[[str], Optional[EnrichmentResult]]


@dataclass(frozen=True)
class Found:
    result: EnrichmentResult


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class RateLimited:
    reason: str = ""


LookupOutcome = Union[Found, NotFound, RateLimited]


def merge_results(base: EnrichmentResult, extra: Optional[EnrichmentResult]) -> EnrichmentResult:
    """
    Registry result wins; the search result only fills holes.

    Published date is the one field a present value can lose: a year-only date
    gives way to any more precise date from the search side.
    """
    if extra is None:
        return base
    changes = {}
    if not base.thumbnail and extra.thumbnail:
        changes["thumbnail"] = extra.thumbnail
    if not base.description and extra.description:
        changes["description"] = extra.description
    if not base.page_count and extra.page_count:
        changes["page_count"] = extra.page_count
    base_date, extra_date = base.published_date, extra.published_date
    if extra_date and (not base_date or is_more_precise_date(base_date, extra_date)):
        changes["published_date"] = extra_date
    if not base.categories and extra.categories:
        changes["categories"] = list(extra.categories)
    return replace(base, **changes) if changes else base


def lookup_isbn(isbn: str, *, registry: ResultFetcher, search_isbn: ResultFetcher) -> LookupOutcome:
    """Query both providers concurrently and merge them into one outcome."""
    with ThreadPoolExecutor(max_workers=2) as ex:
        registry_fut = ex.submit(registry, isbn)
        search_fut = ex.submit(search_isbn, isbn)

        try:
            registry_result = registry_fut.result()
        except Exception as e:
            logger.debug("registry lookup failed | isbn=%s | err=%r", isbn, e)
            registry_result = None

        rate_limited: Optional[RateLimitError] = None
        try:
            search_result = search_fut.result()
        except RateLimitError as e:
            rate_limited = e
            search_result = None
        except Exception as e:
            logger.debug("search lookup failed | isbn=%s | err=%r", isbn, e)
            search_result = None

    if registry_result is not None:
        return Found(merge_results(registry_result, search_result))
    if search_result is not None:
        return Found(search_result)
    if rate_limited is not None:
        return RateLimited(str(rate_limited))
    return NotFound()


class BookLookup:
    """Wires the two provider clients into the outcomes the scheduler consumes."""

    def __init__(
        self,
        google: GoogleBooksClient,
        *,
        registry_session: Optional[requests.Session] = None,
        timeout_s: float = 10.0,
        retries: int = 0,
    ) -> None:
        self.google = google
        self.registry_session = registry_session or make_session()
        self.timeout_s = timeout_s
        self.retries = retries

    def registry(self, isbn: str) -> Optional[EnrichmentResult]:
        return search_by_isbn_openbd(
            isbn,
            session=self.registry_session,
            timeout_s=self.timeout_s,
            retries=self.retries,
        )

    def lookup_isbn(self, isbn: str) -> LookupOutcome:
        return lookup_isbn(isbn, registry=self.registry, search_isbn=self.google.search_by_isbn)

    def search_title(self, query: str) -> LookupOutcome:
        try:
            results = self.google.search_books(query)
        except RateLimitError as e:
            return RateLimited(str(e))
        if not results:
            return NotFound()
        return Found(results[0])
