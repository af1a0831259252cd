"""Catalog capability shared by the live TMDb client and the mock client.

Concrete clients only know how to fetch raw candidates from their source.
Filtering, fallback ranking and pagination live here, in ``refine``, so the
offline mock and the live service answer the same query the same way.

Ordering rules:

* no year requested: most recent release first, ties by title;
* year requested and matched strictly: same recency order;
* year requested but nothing matched: the genre-filtered candidates ranked
  by distance to the requested year, ties by title. Undated items go last.

Trending results keep the order the source ranked them in.
"""

from __future__ import annotations

import math
import os
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from loguru import logger

from ..log import env_flag
from ..models import PAGE_SIZE, CatalogDetails, CatalogItem, Genre, PagedResult


def matches_genres(item: CatalogItem, genre_ids: Optional[Iterable[int]]) -> bool:
    """Any-of genre match; an empty or missing request matches everything."""
    wanted = set(genre_ids or ())
    if not wanted:
        return True
    return not wanted.isdisjoint(item.genre_ids)


def _title_key(item: CatalogItem) -> tuple:
    return (item.title.casefold(), item.title, item.id)


def by_recency(items: Iterable[CatalogItem]) -> List[CatalogItem]:
    # Sort by title first, then stably by date, so equal dates keep title order.
    ordered = sorted(items, key=_title_key)
    return sorted(ordered, key=lambda i: i.release_date or "", reverse=True)


def by_year_distance(items: Iterable[CatalogItem], year: int) -> List[CatalogItem]:
    def key(item: CatalogItem) -> tuple:
        item_year = item.year
        distance = abs(item_year - year) if item_year is not None else math.inf
        return (distance,) + _title_key(item)

    return sorted(items, key=key)


def paginate(items: Sequence[CatalogItem], page: int) -> PagedResult[CatalogItem]:
    total_results = len(items)
    total_pages = math.ceil(total_results / PAGE_SIZE)
    safe_page = min(max(int(page or 1), 1), max(total_pages, 1))
    start = (safe_page - 1) * PAGE_SIZE
    return PagedResult(
        page=safe_page,
        results=list(items[start:start + PAGE_SIZE]),
        total_pages=total_pages,
        total_results=total_results,
    )


def refine(
    candidates: Iterable[CatalogItem],
    page: int = 1,
    year: Optional[int] = None,
    genre_ids: Optional[Iterable[int]] = None,
) -> PagedResult[CatalogItem]:
    """Apply genre/year filtering, fallback ranking and pagination."""
    genre_ids = list(genre_ids or [])
    by_genre = [c for c in candidates if matches_genres(c, genre_ids)]
    if year is None:
        return paginate(by_recency(by_genre), page)

    strict = [c for c in by_genre if c.year == year]
    if strict:
        return paginate(by_recency(strict), page)

    logger.debug(
        f"[Catalog] No match for year={year} genres={genre_ids}; "
        f"ranking {len(by_genre)} candidates by distance to {year}"
    )
    return paginate(by_year_distance(by_genre, year), page)


class CatalogClient(ABC):
    """Movie catalog capability.

    Subclasses provide the raw candidate lists and the single-record
    lookups; list operations are refined here.
    """

    def get_trending(self, page: int = 1) -> PagedResult[CatalogItem]:
        return paginate(self._trending_candidates(), page)

    def search(
        self,
        query: str,
        page: int = 1,
        year: Optional[int] = None,
        genre_ids: Optional[Iterable[int]] = None,
    ) -> PagedResult[CatalogItem]:
        return refine(self._search_candidates(query), page=page, year=year, genre_ids=genre_ids)

    def discover(
        self,
        page: int = 1,
        year: Optional[int] = None,
        genre_ids: Optional[Iterable[int]] = None,
    ) -> PagedResult[CatalogItem]:
        genre_ids = list(genre_ids or [])
        return refine(self._discover_candidates(genre_ids), page=page, year=year, genre_ids=genre_ids)

    def search_id_by_title(self, title: str, year: Optional[str] = None) -> Optional[int]:
        found = self.find_by_title(title, year)
        return found.id if found else None

    @abstractmethod
    def find_by_title(self, title: str, year: Optional[str] = None) -> Optional[CatalogItem]:
        """Return the best catalog match for a title, or ``None``."""

    @abstractmethod
    def get_details(self, movie_id: int) -> CatalogDetails:
        ...

    @abstractmethod
    def get_similar(self, movie_id: int) -> List[CatalogItem]:
        ...

    @abstractmethod
    def get_genres(self) -> List[Genre]:
        ...

    @abstractmethod
    def _trending_candidates(self) -> List[CatalogItem]:
        ...

    @abstractmethod
    def _search_candidates(self, query: str) -> List[CatalogItem]:
        ...

    @abstractmethod
    def _discover_candidates(self, genre_ids: List[int]) -> List[CatalogItem]:
        ...


def build_catalog_client() -> CatalogClient:
    """Pick the catalog implementation once, from ``TMDB_MOCK``."""
    from .mock_catalog import MockCatalogClient
    from .tmdb import TMDBClient

    if env_flag("TMDB_MOCK"):
        logger.info("[Catalog] TMDB_MOCK is set; using the built-in mock dataset")
        return MockCatalogClient()
    client = TMDBClient.from_env()
    if not os.environ.get("TMDB_API_KEY"):
        logger.warning("[Catalog] TMDB_API_KEY is not set; catalog calls will fail until it is configured")
    return client
