from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from reading_backfill.core.genre import map_category_to_genre
from reading_backfill.core.models import BookRecord, EnrichmentResult
from reading_backfill.core.normalize import is_more_precise_date


def _is_blank(value: Any) -> bool:
    return not value


@dataclass(frozen=True)
class FillRule:
    """
    One row of the "fill only if empty" policy.

    record_field is written from result_field when the record value is empty,
    or when `override(current, incoming)` says the present value is still worth
    replacing. An incoming value equal to the current one is never written.
    """

    record_field: str
    result_field: str
    is_empty: Callable[[Any], bool] = _is_blank
    override: Optional[Callable[[Any, Any], bool]] = None


FILL_RULES: Tuple[FillRule, ...] = (
    FillRule("page_count", "page_count"),
    FillRule("published_date", "published_date", override=is_more_precise_date),
    FillRule("thumbnail", "thumbnail"),
    FillRule("description", "description"),
)


def build_patch(record: BookRecord, result: EnrichmentResult) -> Dict[str, Any]:
    patch: Dict[str, Any] = {}
    for rule in FILL_RULES:
        current = getattr(record, rule.record_field)
        incoming = getattr(result, rule.result_field)
        if not incoming or incoming == current:
            continue
        wanted = rule.is_empty(current) or (rule.override is not None and rule.override(current, incoming))
        if wanted:
            patch[rule.record_field] = incoming
    # genre is derived, not copied
    if not record.genre and result.categories:
        patch["genre"] = map_category_to_genre(result.categories)
    return patch
