"""FastAPI application exposing sourcefinder search as JSON."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from sourcefinder.config import AppConfig
from sourcefinder.errors import SourceFinderError
from sourcefinder.index.search import SearchHit, Searcher
from sourcefinder.index.status import read_status
from sourcefinder.index.storage import EngineStore

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="sourcefinder", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class RenderLinePayload(BaseModel):
    line_no: int
    text: str
    bold: bool
    band: int | None = None


class HitPayload(BaseModel):
    id: str
    score: float
    score_percent: float
    updated_at: str
    n_matches: int
    first_match: int | None = None
    explanation: str | None = None
    width: int
    lines: List[RenderLinePayload]


class SearchResponse(BaseModel):
    query: str
    page: int
    total: int
    took: int
    pages: int
    error: str | None = None
    results: List[HitPayload]


def _config() -> AppConfig:
    return AppConfig.from_env()


def _hit_payload(hit: SearchHit) -> HitPayload:
    return HitPayload(
        id=hit.id,
        score=hit.score,
        score_percent=hit.score_percent,
        updated_at=hit.updated_at.isoformat(),
        n_matches=hit.n_matches,
        first_match=hit.first_match,
        explanation=hit.explanation,
        width=hit.plan.width,
        lines=[
            RenderLinePayload(line_no=line.line_no, text=line.text, bold=line.bold, band=line.band)
            for line in hit.plan.lines
        ],
    )


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.get("/search", response_model=SearchResponse)
def search_documents(q: str = "", page: int = 0, id: str | None = None) -> SearchResponse:
    config = _config()
    store = EngineStore(config)
    try:
        result = Searcher(store, config).search(q, page=page, doc_id=id or None)
    finally:
        store.close()

    return SearchResponse(
        query=result.query,
        page=result.page,
        total=result.total,
        took=result.took,
        pages=result.pages,
        error=result.error,
        results=[_hit_payload(hit) for hit in result.hits],
    )


@app.get("/status")
def sync_status() -> dict[str, str]:
    """Revisions of the indexed sub-trees, as written by the last sync."""
    config = _config()
    return {"status": read_status(config.resolve_source_root(Path.cwd()) / config.status_name)}


@app.get("/stat")
def engine_stat() -> dict[str, Any]:
    config = _config()
    store = EngineStore(config)
    try:
        return store.stat()
    except SourceFinderError as exc:
        LOGGER.error("Engine stat failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        store.close()
