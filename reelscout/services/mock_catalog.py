"""Offline catalog client backed by the built-in dataset."""

from __future__ import annotations

from typing import Dict, List, Optional

from ..errors import NotFoundError
from ..models import CatalogDetails, CatalogItem, Genre
from .catalog import CatalogClient, by_recency
from .mock_data import MOCK_MOVIES, mock_genres


class MockCatalogClient(CatalogClient):
    def __init__(self, movies: Optional[List[CatalogDetails]] = None) -> None:
        self.movies = list(MOCK_MOVIES if movies is None else movies)
        self._by_id: Dict[int, CatalogDetails] = {m.id: m for m in self.movies}

    def _items(self) -> List[CatalogItem]:
        return [m.as_item() for m in self.movies]

    def _trending_candidates(self) -> List[CatalogItem]:
        return by_recency(self._items())

    def _search_candidates(self, query: str) -> List[CatalogItem]:
        q = (query or "").strip().lower()
        if not q:
            return self._items()
        return [i for i in self._items() if q in f"{i.title} {i.overview or ''}".lower()]

    def _discover_candidates(self, genre_ids: List[int]) -> List[CatalogItem]:
        return self._items()

    def get_details(self, movie_id: int) -> CatalogDetails:
        found = self._by_id.get(movie_id)
        if found is None:
            raise NotFoundError(f"Movie not found (mock): {movie_id}")
        return found

    def get_similar(self, movie_id: int) -> List[CatalogItem]:
        """Other titles sharing a genre, most shared genres first."""
        subject = self.get_details(movie_id)
        wanted = set(subject.genre_ids)
        scored = []
        for item in self._items():
            if item.id == subject.id:
                continue
            shared = len(wanted.intersection(item.genre_ids))
            if shared:
                scored.append((shared, item))
        scored.sort(key=lambda pair: (-pair[0], pair[1].title.casefold(), pair[1].title))
        return [item for _, item in scored]

    def get_genres(self) -> List[Genre]:
        return mock_genres()

    def find_by_title(self, title: str, year: Optional[str] = None) -> Optional[CatalogItem]:
        wanted = (title or "").strip().lower()
        if not wanted:
            return None
        matches = [i for i in self._items() if wanted in i.title.lower()]
        if year:
            matches = [i for i in matches if i.release_date and i.release_date.startswith(str(year))]
        # Exact title hits rank ahead of substring hits.
        matches.sort(key=lambda i: i.title.lower() != wanted)
        return matches[0] if matches else None
