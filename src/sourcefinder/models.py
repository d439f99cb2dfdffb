"""Core sourcefinder data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

# Field names understood by the search engine
ID_FIELD = "id"
SEARCH_FIELD = "content_no_norms"
FILENAME_FIELD = "filename_no_norms_no_store"
HASH_FIELD = "hash"
STAMP_FIELD = "stamp_long"


@dataclass(slots=True)
class Document:
    """A source file ready to be sent to the engine."""

    id: str
    path: str
    content: str
    fingerprint: str
    indexed_at: int

    def to_wire(self) -> Dict[str, Any]:
        return {
            ID_FIELD: self.id,
            FILENAME_FIELD: self.path,
            SEARCH_FIELD: self.content,
            HASH_FIELD: self.fingerprint,
            STAMP_FIELD: self.indexed_at,
        }


@dataclass(slots=True)
class MatchResult:
    """One hit returned by the engine."""

    id: str
    score: float
    matched_lines: Tuple[int, ...]
    updated_at: datetime
    content: str = ""
    explanation: str | None = None
    n_matches: int = 0

    @classmethod
    def from_hit(cls, hit: Dict[str, Any]) -> "MatchResult":
        state = list(_flatten(hit.get("_result_state") or []))
        return cls(
            id=str(hit.get(ID_FIELD, "")),
            score=float(hit.get("_score") or 0.0),
            matched_lines=tuple(sorted({int(line) for line in state})),
            updated_at=datetime.fromtimestamp(int(hit.get(STAMP_FIELD) or 0), tz=timezone.utc),
            content=hit.get(SEARCH_FIELD) or "",
            explanation=hit.get("_explain"),
            n_matches=len(state),
        )


@dataclass(slots=True)
class RenderLine:
    line_no: int
    text: str
    show: bool = False
    bold: bool = False
    band: int | None = None


@dataclass(slots=True)
class RenderPlan:
    """Lines selected for display around the matches of one document."""

    lines: list[RenderLine] = field(default_factory=list)
    width: int = 1
    first_match: int | None = None

    def format(self) -> list[str]:
        return [f"{line.line_no:>{self.width}d} | {line.text}" for line in self.lines]


def _flatten(items):
    for item in items:
        if isinstance(item, (list, tuple)):
            yield from _flatten(item)
        else:
            yield item
