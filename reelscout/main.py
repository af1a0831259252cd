"""Main FastAPI application for ReelScout.

This module exposes the catalog browse/search endpoints and the
recommendation endpoint as JSON, initialises the service clients from the
environment, and maps the error taxonomy onto HTTP status codes.
Authentication and favorites are handled by other services in front of
this one.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from . import log
from .errors import (
    ConfigurationError,
    MalformedGenerationOutput,
    NotFoundError,
    ReelScoutError,
    UpstreamError,
    ValidationError,
)
from .services.cache import RecommendationCache
from .services.catalog import CatalogClient, build_catalog_client
from .services.generation import OpenAIBackend
from .services.recommender import Recommender

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConfigurationError, 500),
    (UpstreamError, 502),
    (MalformedGenerationOutput, 502),
)


def status_for(exc: ReelScoutError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def positive_int(name: str, raw: Any, default: Optional[int] = None) -> Optional[int]:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a positive integer") from None
    if value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return value


def parse_genre_ids(raw: Optional[str]) -> List[int]:
    """Parse a comma-separated ``genreIds`` query value."""
    if not raw:
        return []
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if part:
            ids.append(positive_int("genreIds", part))
    return ids


def create_app(
    catalog: Optional[CatalogClient] = None,
    recommender: Optional[Recommender] = None,
) -> FastAPI:
    """Build the application; collaborators default to ones read from the environment."""
    log.configure()
    catalog = catalog or build_catalog_client()
    reco = recommender or Recommender(
        catalog=catalog,
        backend=OpenAIBackend.from_env(),
        cache=RecommendationCache.from_env(),
    )

    app = FastAPI(title="ReelScout API")

    @app.exception_handler(ReelScoutError)
    async def handle_error(request: Request, exc: ReelScoutError) -> JSONResponse:
        status = status_for(exc)
        logger.warning(f"[API] {request.url.path} -> {status} {exc.kind}: {exc.message}")
        return JSONResponse(status_code=status, content=exc.to_dict())

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True}

    @app.get("/tmdb/trending")
    def trending(page: Optional[str] = None) -> Dict[str, Any]:
        return catalog.get_trending(positive_int("page", page, 1)).to_dict()

    @app.get("/tmdb/search")
    def search(
        query: str = "",
        page: Optional[str] = None,
        year: Optional[str] = None,
        genreIds: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not query.strip():
            raise ValidationError("query must not be empty")
        result = catalog.search(
            query,
            page=positive_int("page", page, 1),
            year=positive_int("year", year),
            genre_ids=parse_genre_ids(genreIds),
        )
        return result.to_dict()

    @app.get("/tmdb/discover")
    def discover(page: Optional[str] = None, year: Optional[str] = None, genreIds: Optional[str] = None) -> Dict[str, Any]:
        result = catalog.discover(
            page=positive_int("page", page, 1),
            year=positive_int("year", year),
            genre_ids=parse_genre_ids(genreIds),
        )
        return result.to_dict()

    @app.get("/tmdb/genres")
    def genres() -> Dict[str, Any]:
        return {"genres": [g.to_dict() for g in catalog.get_genres()]}

    @app.get("/tmdb/movie/{movie_id}")
    def movie_detail(movie_id: str) -> Dict[str, Any]:
        return catalog.get_details(positive_int("movie id", movie_id)).to_dict()

    @app.get("/recommendations/{movie_id}")
    def recommendations(movie_id: str) -> Dict[str, Any]:
        return reco.get_recommendations(positive_int("movieId", movie_id)).to_dict()

    return app


def run() -> None:
    """Serve the API with uvicorn (``reelscout`` console script)."""
    import uvicorn

    uvicorn.run(
        "reelscout.main:create_app",
        factory=True,
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "4000")),
    )
