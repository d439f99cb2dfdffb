"""Change-detection indexing pipeline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Sequence

from sourcefinder.config import DEFAULT_EXTENSIONS
from sourcefinder.errors import IndexingError
from sourcefinder.index.storage import EngineStore
from sourcefinder.models import Document
from sourcefinder.utils.files import compute_fingerprint, decode_source, iter_source_paths, relative_id

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexStats:
    read: int = 0
    unchanged: int = 0
    submitted: int = 0
    batches: int = 0
    submitted_ids: list[str] = field(default_factory=list)

    def merge(self, other: "IndexStats") -> None:
        self.read += other.read
        self.unchanged += other.unchanged
        self.submitted += other.submitted
        self.batches += other.batches
        self.submitted_ids.extend(other.submitted_ids)


def build_document(root: Path, path: Path, *, now: int | None = None) -> Document:
    """Read a file and turn it into a fingerprinted document."""
    data = path.read_bytes()
    doc_id = relative_id(root, path)
    return Document(
        id=doc_id,
        path=doc_id,
        content=decode_source(data),
        fingerprint=compute_fingerprint(data),
        indexed_at=int(time.time()) if now is None else now,
    )


class Indexer:
    """Keeps the remote index in sync with a source tree."""

    def __init__(
        self,
        store: EngineStore,
        *,
        batch_size: int = 100,
        detect_changes: bool = True,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.batch_size = batch_size
        self.detect_changes = detect_changes
        self.extensions = tuple(extensions)

    def iter_batches(self, root: Path) -> Iterator[list[Document]]:
        """Yield documents under ``root`` in sorted path order, ``batch_size`` at a time."""
        batch: list[Document] = []
        for path in iter_source_paths(root, self.extensions):
            batch.append(build_document(root, path))
            if len(batch) >= self.batch_size:
                yield batch
                batch = []
        if batch:
            yield batch

    def filter_changed(self, documents: Sequence[Document]) -> list[Document]:
        """Drop documents whose (id, fingerprint) the engine already has."""
        if not self.detect_changes:
            return list(documents)
        unchanged = self.store.check_existing((doc.id, doc.fingerprint) for doc in documents)
        return [doc for doc in documents if doc.id not in unchanged]

    def index(self, root: Path) -> IndexStats:
        """Index every matching file under ``root``.

        Stops at the first failing batch and raises ``IndexingError``;
        batches submitted before the failure stay submitted.
        """
        stats = IndexStats()
        LOGGER.info("Indexing %s (%s)", root, ", ".join(self.extensions))

        batches = self.iter_batches(root)
        t0 = time.monotonic()
        while True:
            try:
                batch = next(batches)
            except StopIteration:
                break
            except OSError as exc:
                raise IndexingError(stats.batches + 1, stats, exc) from exc

            stats.batches += 1
            stats.read += len(batch)
            read_took = time.monotonic() - t0
            t0 = time.monotonic()
            try:
                changed = self.filter_changed(batch)
                submitted = self.store.submit(changed)
            except Exception as exc:
                LOGGER.error("Batch %d under %s failed: %s", stats.batches, root, exc)
                raise IndexingError(stats.batches, stats, exc) from exc

            stats.unchanged += len(batch) - len(changed)
            stats.submitted += len(submitted)
            stats.submitted_ids.extend(doc.id for doc in submitted)
            LOGGER.info(
                "read/list for %d documents took %.4fs, save took %.4fs for %d changed documents",
                len(batch),
                read_took,
                time.monotonic() - t0,
                len(submitted),
            )
            t0 = time.monotonic()

        if stats.read == 0:
            LOGGER.warning("No source files found under %s", root)
        return stats
