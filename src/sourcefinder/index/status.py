"""Sync status record: which revision of each sub-tree was last indexed."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List

LOGGER = logging.getLogger(__name__)

UNREADABLE_STATUS = ".. unable to open the status file .."


@dataclass(slots=True)
class StatusRecord:
    timestamp: datetime
    name: str
    revision: str

    def format(self) -> str:
        return f"{self.timestamp.strftime('%a %b %d %H:%M:%S %Y')} {self.name} {self.revision}".rstrip()


def git_revision(path: Path) -> str:
    """Return ``git rev-parse HEAD`` for ``path``, or an empty string."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=path,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        LOGGER.debug("git unavailable for %s: %s", path, exc)
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def collect_status(source_root: Path, *, status_name: str) -> List[StatusRecord]:
    """One record per top-level sub-directory of ``source_root``, sorted by name."""
    records: List[StatusRecord] = []
    for child in sorted(source_root.iterdir(), key=lambda p: p.name):
        if child.name in (status_name, f"{status_name}.tmp") or not child.is_dir():
            continue
        records.append(StatusRecord(datetime.now(), child.name, git_revision(child)))
    return records


def write_status(path: Path, records: List[StatusRecord]) -> None:
    """Write records to ``path`` through a temporary file."""
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text("".join(record.format() + "\n" for record in records), encoding="utf-8")
    tmp.replace(path)


def read_status(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError:
        return UNREADABLE_STATUS
