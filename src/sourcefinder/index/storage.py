"""HTTP client for the remote full-text engine."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Set

import requests

from sourcefinder.config import AppConfig
from sourcefinder.errors import RemoteRejection, TransportError
from sourcefinder.index.query import SearchQuery, build_existence_query
from sourcefinder.models import FILENAME_FIELD, ID_FIELD, SEARCH_FIELD, Document

LOGGER = logging.getLogger(__name__)

# Keeps filename token positions clear of content line numbers
FILENAME_LINE_OFFSET = 100000


def analyzer() -> Dict[str, Dict[str, Any]]:
    return {
        SEARCH_FIELD: {"type": "custom", "tokenizer": "code"},
        FILENAME_FIELD: {"type": "custom", "tokenizer": "code", "line-offset": FILENAME_LINE_OFFSET},
    }


@dataclass(slots=True)
class QueryOptions:
    page: int = 0
    size: int = 15
    explain: bool = False
    refresh: bool = False
    fields: Dict[str, bool] | None = None


@dataclass(slots=True)
class EngineResponse:
    total: int = 0
    took: int = 0
    hits: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "EngineResponse":
        return cls(
            total=int(payload.get("total") or 0),
            took=int(payload.get("took") or 0),
            hits=list(payload.get("hits") or []),
        )


def _batched(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class EngineStore:
    """Fingerprint-aware persistence layer backed by the search engine."""

    def __init__(self, config: AppConfig, *, session: requests.Session | None = None) -> None:
        self.config = config
        self.url = config.engine_url.rstrip("/")
        self.index = config.index_name
        self._session = session or requests.Session()

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "EngineStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str = "", payload: Dict[str, Any] | None = None) -> Dict[str, Any]:
        url = f"{self.url}{path}"
        body = json.dumps(payload) if payload is not None else None
        try:
            response = self._session.request(
                method,
                url,
                data=body,
                headers={"Content-Type": "application/json"},
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        try:
            decoded = response.json()
        except ValueError as exc:
            raise TransportError(
                f"{method} {url} returned undecodable body (HTTP {response.status_code})"
            ) from exc

        if isinstance(decoded, dict) and decoded.get("exception"):
            raise RemoteRejection(str(decoded["exception"]), decoded.get("trace"))
        if not isinstance(decoded, dict):
            raise TransportError(f"{method} {url} returned unexpected payload: {decoded!r}")
        return decoded

    def find(
        self,
        query: Dict[str, Any],
        *,
        fields: Dict[str, bool] | None = None,
        explain: bool = False,
        page: int = 0,
        size: int | None = None,
        refresh: bool = False,
    ) -> Dict[str, Any]:
        """Run a raw read query and return the decoded engine response."""
        return self._request(
            "GET",
            payload={
                "index": self.index,
                "query": query,
                "fields": fields,
                "analyzer": analyzer(),
                "explain": explain,
                "page": page,
                "size": size if size is not None else self.config.per_page,
                "refresh": refresh,
            },
        )

    def query(self, query: SearchQuery, options: QueryOptions | None = None) -> EngineResponse:
        opts = options or QueryOptions(size=self.config.per_page)
        payload = self.find(
            query.to_wire(),
            fields=opts.fields,
            explain=opts.explain,
            page=opts.page,
            size=opts.size,
            refresh=opts.refresh,
        )
        return EngineResponse.from_payload(payload)

    def check_existing(self, pairs: Iterable[tuple[str, str]]) -> Set[str]:
        """Return ids whose stored (id, fingerprint) pair matches one of ``pairs``."""
        pairs = list(pairs)
        unchanged: Set[str] = set()
        for batch in _batched(pairs, self.config.check_batch_size):
            response = self.query(
                build_existence_query(batch),
                QueryOptions(size=len(batch), fields={ID_FIELD: True}),
            )
            unchanged.update(str(hit[ID_FIELD]) for hit in response.hits if ID_FIELD in hit)
        LOGGER.debug("%d of %d documents unchanged", len(unchanged), len(pairs))
        return unchanged

    def submit(self, documents: Sequence[Document]) -> List[Document]:
        """Send documents to the engine for (re)indexing."""
        documents = list(documents)
        if not documents:
            return []
        self._request(
            "POST",
            payload={
                "index": self.index,
                "documents": [doc.to_wire() for doc in documents],
                "analyzer": analyzer(),
                "force-merge": self.config.force_merge,
            },
        )
        return documents

    def delete(self, query: SearchQuery | Dict[str, Any]) -> Dict[str, Any]:
        wire = query.to_wire() if isinstance(query, SearchQuery) else query
        return self._request("DELETE", payload={"index": self.index, "query": wire})

    def stat(self) -> Dict[str, Any]:
        return self._request("GET", "/_stat")
