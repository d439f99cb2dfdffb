"""Exception hierarchy shared by the indexer, the store client and search."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from sourcefinder.index.indexer import IndexStats


class SourceFinderError(Exception):
    """Base class for all sourcefinder failures."""


class ConfigError(SourceFinderError, ValueError):
    """Invalid configuration value."""


class TransportError(SourceFinderError):
    """The search engine could not be reached or answered with garbage."""


class RemoteRejection(SourceFinderError):
    """The search engine answered with an exception payload."""

    def __init__(self, message: str, trace: str | Iterable[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        if isinstance(trace, str):
            self.trace = trace.splitlines()
        else:
            self.trace = list(trace or [])

    def __str__(self) -> str:
        if not self.trace:
            return self.message
        return "\n".join([self.message, *self.trace])


class IndexingError(SourceFinderError):
    """A change batch failed; earlier batches remain submitted."""

    def __init__(self, batch: int, stats: "IndexStats", cause: BaseException) -> None:
        super().__init__(f"Batch {batch} failed: {cause}")
        self.batch = batch
        self.stats = stats
