"""Structured query assembly for the search engine.

A raw search string such as ``"@glibc @malloc realloc"`` becomes:

* one exact filename term per ``@directive`` (hard filters),
* a tokenized content match scored by line cardinality (the ranked signal),
* an optional file path bonus that never excludes a hit.

Scoring is sent as a structured parameter bundle. The engine evaluates it;
nothing derived from user text is ever shipped as code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple, Union

from sourcefinder.models import FILENAME_FIELD, HASH_FIELD, ID_FIELD, SEARCH_FIELD

FILE_DIRECTIVE_RE = re.compile(r"\B@\w+")

ALL_TOKENS_MATCH_SCORE = 10
FILEPATH_MATCH_SCORE = 2000
SCORING_VERSION = 1


@dataclass(frozen=True, slots=True)
class ScoringParams:
    function: str
    explain: bool = False
    version: int = SCORING_VERSION
    all_tokens_match_score: int | None = None
    bonus: int | None = None
    note: str | None = None

    def to_wire(self) -> Dict[str, Any]:
        wire: Dict[str, Any] = {
            "function": self.function,
            "version": self.version,
            "explain": self.explain,
        }
        if self.all_tokens_match_score is not None:
            wire["all-tokens-match-score"] = self.all_tokens_match_score
        if self.bonus is not None:
            wire["bonus"] = self.bonus
        if self.note is not None:
            wire["note"] = self.note
        return wire


def line_cardinality_scoring(explain: bool = False) -> ScoringParams:
    """sum of maxed tf/idf + ALL_TOKENS_MATCH_SCORE * lines matching all tokens."""
    return ScoringParams(
        function="all-tokens-line-cardinality",
        explain=explain,
        all_tokens_match_score=ALL_TOKENS_MATCH_SCORE,
    )


def path_bonus_scoring(explain: bool = False, bonus: int = FILEPATH_MATCH_SCORE) -> ScoringParams:
    return ScoringParams(
        function="constant-bonus",
        explain=explain,
        bonus=bonus,
        note="token matching in file path",
    )


@dataclass(frozen=True, slots=True)
class ExactTerm:
    field: str
    value: str


@dataclass(frozen=True, slots=True)
class TokenMatch:
    field: str
    value: str
    scoring: ScoringParams
    match_all_if_empty: bool = False
    no_zero: bool = True


@dataclass(frozen=True, slots=True)
class PathBonus:
    field: str
    value: str
    scoring: ScoringParams
    match_all_if_empty: bool = False
    no_zero: bool = False


@dataclass(frozen=True, slots=True)
class SearchQuery:
    must: Tuple["Clause", ...] = ()
    should: Tuple["Clause", ...] = ()
    minimum_should_match: int | None = None

    def to_wire(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if self.must:
            body["must"] = [clause_to_wire(clause) for clause in self.must]
        if self.should:
            body["should"] = [clause_to_wire(clause) for clause in self.should]
        if self.minimum_should_match is not None:
            body["minimum-should-match"] = self.minimum_should_match
        return {"bool": body}


Clause = Union[ExactTerm, TokenMatch, PathBonus, SearchQuery]


def _scored_to_wire(clause: TokenMatch | PathBonus) -> Dict[str, Any]:
    return {
        "term-payload-score": {
            "field": clause.field,
            "value": clause.value,
            "tokenize": True,
            "match-all-if-empty": clause.match_all_if_empty,
            "no-zero": clause.no_zero,
            "scoring": clause.scoring.to_wire(),
        }
    }


def clause_to_wire(clause: Clause) -> Dict[str, Any]:
    if isinstance(clause, ExactTerm):
        return {"term": {"field": clause.field, "value": clause.value}}
    if isinstance(clause, (TokenMatch, PathBonus)):
        return _scored_to_wire(clause)
    if isinstance(clause, SearchQuery):
        return clause.to_wire()
    raise TypeError(f"Unsupported clause type: {type(clause).__name__}")


def parse_file_directives(raw: str) -> tuple[List[str], str]:
    """Split ``@name`` directives from the free text part of a query."""
    tokens = [match[1:] for match in FILE_DIRECTIVE_RE.findall(raw)]
    residual = " ".join(FILE_DIRECTIVE_RE.sub("", raw).split())
    return tokens, residual


def build_query(raw: str, *, doc_id: str | None = None, explain: bool = False) -> SearchQuery:
    """Assemble the scored boolean query for a raw search string."""
    tokens, residual = parse_file_directives(raw)

    must: List[Clause] = []
    if doc_id:
        must.append(ExactTerm(ID_FIELD, doc_id))
    must.extend(ExactTerm(FILENAME_FIELD, token) for token in tokens)
    must.append(TokenMatch(SEARCH_FIELD, residual, line_cardinality_scoring(explain)))

    return SearchQuery(
        must=tuple(must),
        should=(PathBonus(FILENAME_FIELD, residual, path_bonus_scoring(explain)),),
        minimum_should_match=0,
    )


def build_existence_query(pairs: Iterable[tuple[str, str]]) -> SearchQuery:
    """OR of (id, fingerprint) pairs; hits are the unchanged documents."""
    return SearchQuery(
        should=tuple(
            SearchQuery(must=(ExactTerm(ID_FIELD, doc_id), ExactTerm(HASH_FIELD, fingerprint)))
            for doc_id, fingerprint in pairs
        )
    )
