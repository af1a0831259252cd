"""TMDB API client.

This module implements the catalog capability against TheMovieDB (TMDB)
v3 API: trending, search, discover, details, similar titles and the genre
list. It uses the v3 API with an API key. See https://developer.themoviedb.org
for API documentation.

List endpoints are gathered over a few upstream pages and handed to the
shared filtering pipeline in :mod:`reelscout.services.catalog`; the year is
never sent upstream so that a strict miss can fall back to year-closeness
ranking.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from ..errors import (
    ConfigurationError,
    NotFoundError,
    UpstreamAuthError,
    UpstreamGenericError,
    UpstreamNetworkError,
)
from ..models import CatalogDetails, CatalogItem, Genre
from .catalog import CatalogClient


class TMDBClient(CatalogClient):
    def __init__(self, api_key: str, language: str = "en-US", candidate_pages: int = 3) -> None:
        self.api_key = api_key
        self.language = language
        self.candidate_pages = max(1, int(candidate_pages))
        self.base = "https://api.themoviedb.org/3"

    @classmethod
    def from_env(cls) -> "TMDBClient":
        try:
            candidate_pages = int(os.environ.get("TMDB_CANDIDATE_PAGES", "3"))
        except ValueError:
            candidate_pages = 3
        return cls(
            api_key=os.environ.get("TMDB_API_KEY", ""),
            language=os.environ.get("TMDB_LANGUAGE", "en-US"),
            candidate_pages=candidate_pages,
        )

    def _get(self, path: str, params: Dict[str, Any] | None = None, what: str = "request") -> Dict[str, Any]:
        if not self.api_key:
            raise ConfigurationError(
                "TMDB_API_KEY is not set (required for catalog calls); set TMDB_MOCK=true to use the built-in dataset"
            )
        url = f"{self.base}{path}"
        params = dict(params or {})
        params["api_key"] = self.api_key
        if self.language:
            params["language"] = self.language
        try:
            resp = requests.get(url, params=params, timeout=10)
        except requests.RequestException:
            # The exception text embeds the request URL, api_key included.
            logger.warning(f"[TMDB] {what} {path} failed (network error)")
            raise UpstreamNetworkError(f"TMDb {what} failed (network error)") from None
        if resp.status_code in (401, 403):
            logger.warning(f"[TMDB] {what} {path} rejected with {resp.status_code}")
            raise UpstreamAuthError("TMDb auth failed. Check the TMDB_API_KEY configuration")
        if not resp.ok:
            logger.warning(f"[TMDB] {what} {path} returned {resp.status_code}")
            raise UpstreamGenericError(f"TMDb {what} error: {resp.status_code}", status=resp.status_code)
        try:
            return resp.json()
        except ValueError:
            logger.warning(f"[TMDB] {what} {path} returned a body that is not JSON")
            raise UpstreamGenericError(f"TMDb {what} returned invalid JSON", status=resp.status_code) from None

    def _collect(self, path: str, params: Dict[str, Any] | None = None, what: str = "request") -> List[CatalogItem]:
        """Fetch up to ``candidate_pages`` pages of a list endpoint."""
        items: List[CatalogItem] = []
        seen = set()
        page = 1
        fetched = 0
        while page <= self.candidate_pages:
            data = self._get(path, params={**(params or {}), "page": page}, what=what)
            fetched += 1
            for raw in data.get("results") or []:
                if not isinstance(raw.get("id"), int) or not isinstance(raw.get("title"), str):
                    continue
                if raw["id"] in seen:
                    continue
                seen.add(raw["id"])
                items.append(CatalogItem.from_api(raw))
            if page >= int(data.get("total_pages") or 0):
                break
            page += 1
        logger.debug(f"[TMDB] {what}: {len(items)} candidates from {fetched} page(s)")
        return items

    def _trending_candidates(self) -> List[CatalogItem]:
        return self._collect("/trending/movie/week", what="trending")

    def _search_candidates(self, query: str) -> List[CatalogItem]:
        params = {"query": query, "include_adult": "false"}
        return self._collect("/search/movie", params=params, what="search")

    def _discover_candidates(self, genre_ids: List[int]) -> List[CatalogItem]:
        params: Dict[str, Any] = {"include_adult": "false", "sort_by": "popularity.desc"}
        if genre_ids:
            # Pipe-separated ids are OR'ed by TMDB; commas would AND them.
            params["with_genres"] = "|".join(str(g) for g in genre_ids)
        return self._collect("/discover/movie", params=params, what="discover")

    def get_details(self, movie_id: int) -> CatalogDetails:
        try:
            data = self._get(f"/movie/{movie_id}", what="details")
        except UpstreamGenericError as exc:
            if exc.status == 404:
                raise NotFoundError(f"Movie not found: {movie_id}") from exc
            raise
        return CatalogDetails.from_api(data)

    def get_similar(self, movie_id: int) -> List[CatalogItem]:
        data = self._get(f"/movie/{movie_id}/similar", what="similar")
        results = data.get("results") or []
        return [
            CatalogItem.from_api(r)
            for r in results
            if isinstance(r.get("id"), int) and isinstance(r.get("title"), str)
        ]

    def get_genres(self) -> List[Genre]:
        data = self._get("/genre/movie/list", what="genres")
        return [Genre.from_api(g) for g in data.get("genres") or []]

    def find_by_title(self, title: str, year: Optional[str] = None) -> Optional[CatalogItem]:
        params: Dict[str, Any] = {"query": title}
        if year:
            params["year"] = year
        data = self._get("/search/movie", params=params, what="search")
        first = (data.get("results") or [None])[0]
        if not first or not isinstance(first.get("id"), int):
            return None
        return CatalogItem.from_api(first)
