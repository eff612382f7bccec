from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# JSON key used by the library blob for each BookRecord attribute.
RECORD_JSON_KEYS = {
    "id": "id",
    "title": "title",
    "author": "author",
    "genre": "genre",
    "published_date": "publishedDate",
    "status": "status",
    "page_count": "pageCount",
    "rating": "rating",
    "memo": "memo",
    "description": "description",
    "thumbnail": "thumbnail",
    "purchase_url": "purchaseUrl",
    "finished_date": "finishedDate",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


@dataclass(frozen=True)
class BookRecord:
    id: str
    title: str
    author: str
    genre: str
    published_date: str
    status: str
    page_count: int
    rating: int
    memo: str
    description: str
    thumbnail: Optional[str]
    purchase_url: str
    finished_date: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "BookRecord":
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            author=str(data.get("author") or ""),
            genre=str(data.get("genre") or ""),
            published_date=str(data.get("publishedDate") or ""),
            status=str(data.get("status") or "tsundoku"),
            page_count=int(data.get("pageCount") or 0),
            rating=int(data.get("rating") or 0),
            memo=str(data.get("memo") or ""),
            description=str(data.get("description") or ""),
            thumbnail=data.get("thumbnail") or None,
            purchase_url=str(data.get("purchaseUrl") or ""),
            finished_date=data.get("finishedDate") or None,
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
        )

    def to_json(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in RECORD_JSON_KEYS.items()}


@dataclass(frozen=True)
class EnrichmentResult:
    """Provider-normalized lookup result. Never persisted."""

    id: str
    title: str
    authors: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    published_date: str = ""
    page_count: int = 0
    thumbnail: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class BackfillReport:
    skipped: bool = False
    phase1_candidates: int = 0
    phase1_updated: int = 0
    phase1_rate_limited: bool = False
    phase2_candidates: int = 0
    phase2_updated: int = 0
    phase2_rate_limited: bool = False
    marked_no_data: int = 0
    errors: int = 0
