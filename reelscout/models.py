"""Data model shared by the catalog clients and the recommender.

Catalog records mirror the TMDb wire format closely: ``to_dict`` renders
the snake_case field names TMDb itself uses (``release_date``,
``poster_path``, ``genre_ids``) so responses can be passed through to
callers unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

PAGE_SIZE = 20
MAX_RECOMMENDATIONS = 5

T = TypeVar("T")

IMAGE_BASE = "https://image.tmdb.org/t/p"


def poster_url(path: Optional[str], size: str = "w342") -> Optional[str]:
    """Return the full TMDB image URL for a poster path, or None."""
    if not path:
        return None
    return f"{IMAGE_BASE}/{size}{path}"


def year_of(release_date: Optional[str]) -> Optional[int]:
    """Return the year component of a ``YYYY-MM-DD`` date, if any."""
    if not release_date or len(release_date) < 4:
        return None
    try:
        return int(release_date[:4])
    except ValueError:
        return None


@dataclass(frozen=True)
class Genre:
    id: int
    name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Genre":
        return cls(id=int(data["id"]), name=str(data.get("name") or ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class CatalogItem:
    id: int
    title: str
    overview: Optional[str] = None
    release_date: Optional[str] = None
    poster_path: Optional[str] = None
    genre_ids: List[int] = field(default_factory=list)

    @property
    def year(self) -> Optional[int]:
        return year_of(self.release_date)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CatalogItem":
        """Build an item from a TMDb list entry.

        TMDb sends an empty string rather than null for unknown release
        dates; those are normalised to ``None``.
        """
        genre_ids = data.get("genre_ids")
        if genre_ids is None:
            genre_ids = [g["id"] for g in data.get("genres") or []]
        return cls(
            id=int(data["id"]),
            title=str(data.get("title") or ""),
            overview=data.get("overview") or None,
            release_date=data.get("release_date") or None,
            poster_path=data.get("poster_path") or None,
            genre_ids=[int(g) for g in genre_ids],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "overview": self.overview,
            "release_date": self.release_date,
            "poster_path": self.poster_path,
            "poster_url": poster_url(self.poster_path),
            "genre_ids": list(self.genre_ids),
        }


@dataclass(frozen=True)
class CatalogDetails(CatalogItem):
    genres: List[Genre] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CatalogDetails":
        item = CatalogItem.from_api(data)
        genres = [Genre.from_api(g) for g in data.get("genres") or []]
        return cls(
            id=item.id,
            title=item.title,
            overview=item.overview,
            release_date=item.release_date,
            poster_path=item.poster_path,
            genre_ids=item.genre_ids or [g.id for g in genres],
            genres=genres,
        )

    def as_item(self) -> CatalogItem:
        """Drop the resolved genre names, keeping only the list-entry fields."""
        return CatalogItem(
            id=self.id,
            title=self.title,
            overview=self.overview,
            release_date=self.release_date,
            poster_path=self.poster_path,
            genre_ids=list(self.genre_ids),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["genres"] = [g.to_dict() for g in self.genres]
        return data


@dataclass
class PagedResult(Generic[T]):
    page: int
    results: List[T]
    total_pages: int
    total_results: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "results": [r.to_dict() for r in self.results],
            "total_pages": self.total_pages,
            "total_results": self.total_results,
        }


class RecommendationSource(str, Enum):
    GENERATED = "generated"
    CATALOG_FALLBACK = "catalog-fallback"


@dataclass(frozen=True)
class RecommendationItem:
    title: str
    year: Optional[str] = None
    reason: Optional[str] = None
    resolved_catalog_id: Optional[int] = None
    poster_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "year": self.year,
            "reason": self.reason,
            "resolved_catalog_id": self.resolved_catalog_id,
            "poster_path": self.poster_path,
            "poster_url": poster_url(self.poster_path),
        }


@dataclass(frozen=True)
class RecommendationResult:
    items: Tuple[RecommendationItem, ...]
    source: RecommendationSource

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendations": [i.to_dict() for i in self.items],
            "source": self.source.value,
        }
