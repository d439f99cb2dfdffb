"""Search request handling: query, then highlight every hit."""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from sourcefinder.config import AppConfig
from sourcefinder.index.highlight import highlight
from sourcefinder.index.query import build_query
from sourcefinder.index.storage import EngineStore, QueryOptions
from sourcefinder.models import MatchResult, RenderPlan
from sourcefinder.utils.files import split_lines

LOGGER = logging.getLogger(__name__)

MAX_SCORE_PERCENT = 85.0


@dataclass(slots=True)
class SearchHit:
    id: str
    score: float
    score_percent: float
    updated_at: datetime
    n_matches: int
    matched_lines: List[int]
    explanation: str | None
    plan: RenderPlan

    @property
    def first_match(self) -> int | None:
        return self.plan.first_match


@dataclass(slots=True)
class SearchPage:
    query: str
    page: int = 0
    total: int = 0
    took: int = 0
    pages: int = 0
    hits: List[SearchHit] = field(default_factory=list)
    error: str | None = None


def _score_percent(score: float, first_score: float) -> float:
    if first_score <= 0:
        return 0.0
    return min(100.0 - (score / first_score) * 100.0, MAX_SCORE_PERCENT)


def _format_error(exc: BaseException) -> str:
    frames = traceback.format_tb(exc.__traceback__)[:10]
    return "\n".join([str(exc), *(frame.rstrip() for frame in frames)])


class Searcher:
    """High-level API to query the engine and render match windows."""

    def __init__(self, store: EngineStore, config: AppConfig) -> None:
        self.store = store
        self.config = config

    def search(self, query: str, *, page: int = 0, doc_id: str | None = None) -> SearchPage:
        result = SearchPage(query=query or "", page=max(page, 0))
        if not query or not query.strip():
            return result

        try:
            response = self.store.query(
                build_query(query, doc_id=doc_id, explain=True),
                QueryOptions(page=result.page, size=self.config.per_page, explain=True),
            )
            result.total = response.total
            result.took = response.took
            result.pages = response.total // self.config.per_page

            first_score: float | None = None
            for raw_hit in response.hits:
                match = MatchResult.from_hit(raw_hit)
                if first_score is None:
                    first_score = match.score
                result.hits.append(self._build_hit(match, first_score, full=bool(doc_id)))
        except Exception as exc:
            LOGGER.error("Search for %r failed: %s", query, exc)
            result.total = -1
            result.error = _format_error(exc)

        return result

    def _build_hit(self, match: MatchResult, first_score: float, *, full: bool) -> SearchHit:
        plan = highlight(
            split_lines(match.content),
            match.matched_lines,
            full=full,
            budget=self.config.show_budget,
            radius=self.config.context_radius,
        )
        return SearchHit(
            id=match.id,
            score=match.score,
            score_percent=_score_percent(match.score, first_score),
            updated_at=match.updated_at,
            n_matches=match.n_matches,
            matched_lines=list(match.matched_lines),
            explanation=match.explanation,
            plan=plan,
        )
