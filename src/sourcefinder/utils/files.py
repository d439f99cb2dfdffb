"""Utility helpers for working with source files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable, Iterator


def iter_source_paths(root: Path, extensions: Iterable[str]) -> Iterator[Path]:
    """Yield files under ``root`` with an allowed suffix, sorted by full path."""
    allowed = {ext.lower() for ext in extensions}
    if root.is_file():
        if root.suffix.lower() in allowed:
            yield root
        return
    matches = (p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in allowed)
    yield from sorted(matches, key=lambda p: str(p))


def compute_fingerprint(data: bytes | str) -> str:
    """Compute the SHA256 fingerprint of raw file content."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def decode_source(data: bytes) -> str:
    """Decode file bytes as UTF-8, dropping anything undecodable."""
    return data.decode("utf-8", errors="ignore")


def relative_id(root: Path, path: Path) -> str:
    """Stable document id: the path relative to the indexed root."""
    if root.is_file():
        return path.name
    return path.relative_to(root).as_posix()


def split_lines(content: str) -> list[str]:
    """Split content into lines the way the engine numbers them."""
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.rstrip("\r") for line in lines]
