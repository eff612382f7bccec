from reading_backfill.core.models import EnrichmentResult
from reading_backfill.enrich.lookup import (
    BookLookup,
    Found,
    NotFound,
    RateLimited,
    lookup_isbn,
    merge_results,
)
from reading_backfill.integrations.http_client import ProviderError, RateLimitError


def _registry(**overrides) -> EnrichmentResult:
    data = dict(
        id="openbd-9784000000000",
        title="Registry Title",
        authors=["著者"],
        categories=[],
        published_date="2020-01-15",
        page_count=250,
        thumbnail=None,
        description="registry description",
    )
    data.update(overrides)
    return EnrichmentResult(**data)


def _search(**overrides) -> EnrichmentResult:
    data = dict(
        id="gb-1",
        title="Search Title",
        authors=["Author"],
        categories=["Fiction"],
        published_date="2020-01-15",
        page_count=300,
        thumbnail="http://books.google/thumb",
        description="search description",
    )
    data.update(overrides)
    return EnrichmentResult(**data)


def _raise(exc):
    def _fn(isbn):
        raise exc

    return _fn


def test_merge_fills_empty_thumbnail_from_search() -> None:
    merged = merge_results(_registry(thumbnail=None), _search())
    assert merged.thumbnail == "http://books.google/thumb"


def test_merge_upgrades_year_only_date() -> None:
    merged = merge_results(_registry(published_date="2020"), _search(published_date="2020-03-04"))
    assert merged.published_date == "2020-03-04"


def test_merge_keeps_registry_description_and_pages() -> None:
    merged = merge_results(_registry(), _search())
    assert merged.description == "registry description"
    assert merged.page_count == 250
    assert merged.title == "Registry Title"
    assert merged.id == "openbd-9784000000000"


def test_merge_fills_categories_only_when_registry_has_none() -> None:
    assert merge_results(_registry(), _search()).categories == ["Fiction"]
    assert merge_results(_registry(categories=["文学・評論"]), _search()).categories == ["文学・評論"]


def test_lookup_prefers_registry_and_supplements() -> None:
    outcome = lookup_isbn(
        "9784000000000",
        registry=lambda isbn: _registry(description=None),
        search_isbn=lambda isbn: _search(),
    )
    assert isinstance(outcome, Found)
    assert outcome.result.description == "search description"
    assert outcome.result.page_count == 250


def test_lookup_falls_back_to_search_result() -> None:
    outcome = lookup_isbn("x", registry=lambda isbn: None, search_isbn=lambda isbn: _search())
    assert outcome == Found(_search())


def test_lookup_registry_hit_ignores_quota_on_search_side() -> None:
    outcome = lookup_isbn("x", registry=lambda isbn: _registry(), search_isbn=_raise(RateLimitError("GoogleBooksIsbn", 429)))
    assert isinstance(outcome, Found)
    assert outcome.result == _registry()


def test_lookup_reports_quota_when_nothing_found() -> None:
    outcome = lookup_isbn("x", registry=lambda isbn: None, search_isbn=_raise(RateLimitError("GoogleBooksIsbn", 429)))
    assert isinstance(outcome, RateLimited)


def test_lookup_other_failures_are_not_found() -> None:
    outcome = lookup_isbn(
        "x",
        registry=_raise(ProviderError("registry down")),
        search_isbn=_raise(ProviderError("search down")),
    )
    assert outcome == NotFound()


class _FakeGoogle:
    def __init__(self, results=None, exc=None) -> None:
        self.results = results or []
        self.exc = exc
        self.queries = []

    def search_books(self, query):
        self.queries.append(query)
        if self.exc is not None:
            raise self.exc
        return self.results

    def search_by_isbn(self, isbn):
        return None


def test_search_title_outcomes() -> None:
    assert BookLookup(_FakeGoogle([_search(id="a"), _search(id="b")])).search_title("q") == Found(_search(id="a"))
    assert BookLookup(_FakeGoogle([])).search_title("q") == NotFound()
    outcome = BookLookup(_FakeGoogle(exc=RateLimitError("GoogleBooksSearch", 429))).search_title("q")
    assert isinstance(outcome, RateLimited)


def test_merge_keeps_year_only_date_when_search_is_no_better() -> None:
    assert merge_results(_registry(published_date="2020"), _search(published_date="2021")).published_date == "2020"
