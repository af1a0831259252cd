"""Recommendation engine for ReelScout.

Given a subject movie, the recommender asks the generative backend for
similar titles and resolves each suggestion back to a catalog id. When no
backend credential is configured, or the backend rejects it, the catalog's
own "similar" list is used instead. Results are cached per subject.

The pipeline is a sequence of named stages::

    CACHE_HIT                                         (returned as-is)
    FETCHING_DETAILS -> GENERATIVE_UNAVAILABLE -> FALLBACK_SIMILAR                 (cached)
    FETCHING_DETAILS -> GENERATING -> GENERATIVE_AUTH_FAILED -> FALLBACK_SIMILAR   (cached)
    FETCHING_DETAILS -> GENERATING -> PARSE_FAILED                                 (raises)
    FETCHING_DETAILS -> GENERATING -> RESOLVING_TITLES -> DONE                     (cached)

Results are frozen, so a cached value handed to one caller cannot be
changed under the next.

Concurrent first requests for the same subject are not coalesced; each one
computes its own result.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import List, Tuple

from loguru import logger

from ..errors import MalformedGenerationOutput, ReelScoutError
from ..models import (
    MAX_RECOMMENDATIONS,
    RecommendationItem,
    RecommendationResult,
    RecommendationSource,
)
from .cache import RecommendationCache
from .catalog import CatalogClient
from .generation import (
    GenerationStatus,
    OpenAIBackend,
    SuggestedMovie,
    build_prompt,
    parse_recommendations,
)

FALLBACK_REASON = "Similar on TMDb."


class Stage(str, Enum):
    CACHE_HIT = "cache_hit"
    FETCHING_DETAILS = "fetching_details"
    GENERATIVE_UNAVAILABLE = "generative_unavailable"
    GENERATIVE_AUTH_FAILED = "generative_auth_failed"
    GENERATING = "generating"
    PARSE_FAILED = "parse_failed"
    RESOLVING_TITLES = "resolving_titles"
    FALLBACK_SIMILAR = "fallback_similar"
    DONE = "done"


class Recommender:
    def __init__(
        self,
        catalog: CatalogClient,
        backend: OpenAIBackend,
        cache: RecommendationCache,
        max_resolvers: int = MAX_RECOMMENDATIONS,
    ) -> None:
        self.catalog = catalog
        self.backend = backend
        self.cache = cache
        self.max_resolvers = max(1, min(max_resolvers, MAX_RECOMMENDATIONS))

    def _enter(self, subject_id: int, stage: Stage) -> None:
        logger.debug(f"[Recommender] movie={subject_id} -> {stage.value}")

    def get_recommendations(self, subject_id: int) -> RecommendationResult:
        """Return up to five movies similar to ``subject_id``.

        Catalog errors while fetching the subject are fatal, as are backend
        failures other than a missing or rejected credential, and an answer
        that is not the expected JSON (``MalformedGenerationOutput``).
        """
        cached = self.cache.get(subject_id)
        if cached is not None:
            self._enter(subject_id, Stage.CACHE_HIT)
            return cached

        self._enter(subject_id, Stage.FETCHING_DETAILS)
        details = self.catalog.get_details(subject_id)
        prompt = build_prompt(details)

        outcome = None
        if self.backend.available:
            self._enter(subject_id, Stage.GENERATING)
            outcome = self.backend.complete(prompt, subject_id=subject_id)

        if outcome is None or outcome.status is GenerationStatus.UNAVAILABLE:
            self._enter(subject_id, Stage.GENERATIVE_UNAVAILABLE)
            result = self._from_similar(subject_id)
        elif outcome.status is GenerationStatus.AUTH_FAILED:
            self._enter(subject_id, Stage.GENERATIVE_AUTH_FAILED)
            result = self._from_similar(subject_id)
        else:
            parsed = parse_recommendations(outcome.text)
            if not parsed.ok:
                self._enter(subject_id, Stage.PARSE_FAILED)
                raise MalformedGenerationOutput(parsed.error or "AI response was not valid JSON")
            self._enter(subject_id, Stage.RESOLVING_TITLES)
            result = RecommendationResult(
                items=self._resolve(parsed.items[:MAX_RECOMMENDATIONS]),
                source=RecommendationSource.GENERATED,
            )

        self.cache.set(subject_id, result)
        self._enter(subject_id, Stage.DONE)
        logger.info(
            f"[Recommender] movie={subject_id}: {len(result.items)} recommendation(s) from {result.source.value}"
        )
        return result

    def _from_similar(self, subject_id: int) -> RecommendationResult:
        self._enter(subject_id, Stage.FALLBACK_SIMILAR)
        similar = self.catalog.get_similar(subject_id)[:MAX_RECOMMENDATIONS]
        items = tuple(
            RecommendationItem(
                title=m.title,
                year=str(m.year) if m.year is not None else None,
                reason=FALLBACK_REASON,
                resolved_catalog_id=m.id,
                poster_path=m.poster_path,
            )
            for m in similar
        )
        return RecommendationResult(items=items, source=RecommendationSource.CATALOG_FALLBACK)

    def _resolve_one(self, suggestion: SuggestedMovie) -> RecommendationItem:
        try:
            match = self.catalog.find_by_title(suggestion.title, suggestion.year)
        except ReelScoutError as exc:
            logger.warning(f"[Recommender] Could not resolve '{suggestion.title}': {exc}")
            match = None
        return RecommendationItem(
            title=suggestion.title,
            year=suggestion.year,
            reason=suggestion.reason,
            resolved_catalog_id=match.id if match is not None else None,
            poster_path=match.poster_path if match is not None else None,
        )

    def _resolve(self, suggestions: List[SuggestedMovie]) -> Tuple[RecommendationItem, ...]:
        """Resolve titles concurrently; output order follows the suggestions."""
        if not suggestions:
            return ()
        workers = min(self.max_resolvers, len(suggestions))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="resolve") as pool:
            return tuple(pool.map(self._resolve_one, suggestions))
