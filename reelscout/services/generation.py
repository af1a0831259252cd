"""Generative backend for "similar movie" suggestions.

Wraps the OpenAI chat completions API. The backend is asked for strict JSON
of the form ``{"recommendations": [{"title", "year", "reason"}]}``; the
answer is validated with pydantic and returned as a tagged ``ParseOutcome``
rather than checked key by key. Unknown keys are ignored.

Calls return a ``GenerationOutcome`` so the recommender can tell "no
credential" and "credential rejected" (both handled by falling back to the
catalog) apart from a successful answer. Every other failure raises.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

import openai
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from ..errors import UpstreamGenericError, UpstreamNetworkError
from ..log import GENERATION_CHANNEL, env_flag
from ..models import MAX_RECOMMENDATIONS, CatalogDetails

DEFAULT_MODEL = "gpt-4o-mini"


class SuggestedMovie(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    year: Optional[str] = None
    reason: Optional[str] = None


class SuggestionList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    recommendations: List[SuggestedMovie] = Field(max_length=MAX_RECOMMENDATIONS)


@dataclass
class ParseOutcome:
    items: List[SuggestedMovie] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_recommendations(text: str) -> ParseOutcome:
    """Strictly parse the backend's answer; no markdown stripping, no repair."""
    try:
        payload = json.loads(text)
    except (TypeError, ValueError):
        return ParseOutcome(error="AI response was not valid JSON")
    try:
        parsed = SuggestionList.model_validate(payload)
    except SchemaError as exc:
        return ParseOutcome(error=f"AI response did not match the expected shape ({exc.error_count()} problem(s))")
    return ParseOutcome(items=parsed.recommendations)


def build_prompt(details: CatalogDetails) -> str:
    year = details.year
    genres = ", ".join(g.name for g in details.genres)
    return (
        "You are a movie recommender. Return JSON only. "
        f"Recommend up to {MAX_RECOMMENDATIONS} movies similar in vibe/theme to: "
        f"{details.title} ({year if year is not None else 'n/a'}). "
        f"Genres: {genres or 'n/a'}. Overview: {details.overview or 'n/a'}. "
        'Return exactly this shape: {"recommendations":[{"title":"...","year":"YYYY","reason":"short"}]}. '
        "Do not include markdown or extra keys."
    )


class GenerationStatus(str, Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"
    AUTH_FAILED = "auth_failed"


@dataclass
class GenerationOutcome:
    status: GenerationStatus
    text: str = ""


def looks_like_placeholder(key: Optional[str]) -> bool:
    if not key:
        return True
    return key == "YOUR_OPENAI_API_KEY" or key.startswith("YOUR_") or "replace" in key.lower()


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}…[truncated {len(text) - limit} chars]"


def log_exchange(phase: str, subject_id: int, model: str, prompt: Optional[str] = None, response: Optional[str] = None) -> None:
    """Record a prompt or response on the generation log channel.

    Nothing is emitted unless ``API_LOG_OPENAI`` is enabled; the sink itself
    is installed by :func:`reelscout.log.configure`.
    """
    if not env_flag("API_LOG_OPENAI"):
        return
    try:
        limit = int(os.environ.get("API_LOG_OPENAI_MAX_CHARS", "8000"))
    except ValueError:
        limit = 8000
    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "phase": phase,
        "movieId": subject_id,
        "model": model,
    }
    if prompt is not None:
        entry["prompt"] = _truncate(prompt, limit)
    if response is not None:
        entry["response"] = _truncate(response, limit)
    logger.bind(channel=GENERATION_CHANNEL).info(json.dumps(entry, ensure_ascii=False))


class OpenAIBackend:
    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        max_tokens: int = 350,
        client: Optional[openai.OpenAI] = None,
    ) -> None:
        self.api_key = None if looks_like_placeholder(api_key) else api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client

    @classmethod
    def from_env(cls) -> "OpenAIBackend":
        return cls(
            api_key=os.environ.get("OPENAI_API_KEY"),
            model=os.environ.get("OPENAI_MODEL") or DEFAULT_MODEL,
        )

    @property
    def available(self) -> bool:
        return self.api_key is not None or self._client is not None

    def _get_client(self) -> openai.OpenAI:
        if self._client is None:
            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    def complete(self, prompt: str, subject_id: int = 0) -> GenerationOutcome:
        if not self.available:
            return GenerationOutcome(GenerationStatus.UNAVAILABLE)

        log_exchange("before", subject_id, self.model, prompt=prompt)
        try:
            completion = self._get_client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            logger.warning(f"[Generation] {self.model} rejected the credential ({exc.status_code})")
            return GenerationOutcome(GenerationStatus.AUTH_FAILED)
        except openai.APIConnectionError:
            raise UpstreamNetworkError("AI request failed (network error)") from None
        except openai.APIStatusError as exc:
            raise UpstreamGenericError(f"AI request failed: {exc.status_code}", status=exc.status_code) from exc
        except openai.APIError as exc:
            raise UpstreamGenericError(f"AI request failed: {exc.__class__.__name__}") from exc

        content = ""
        if completion.choices:
            content = completion.choices[0].message.content or ""
        log_exchange("after", subject_id, self.model, response=content)
        return GenerationOutcome(GenerationStatus.OK, text=content)
