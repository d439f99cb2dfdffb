"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from sourcefinder.errors import ConfigError

DEFAULT_ENGINE_URL = "http://localhost:3000"
DEFAULT_INDEX_NAME = "sourcefinder"
DEFAULT_SOURCE_ROOT = Path("SOURCE-TO-INDEX")
DEFAULT_STATUS_NAME = "git.status"
DEFAULT_EXTENSIONS = (".c", ".java", ".pm", ".pl", ".rb", ".clj", ".inc", ".go", ".rs")


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(slots=True)
class AppConfig:
    engine_url: str = DEFAULT_ENGINE_URL
    index_name: str = DEFAULT_INDEX_NAME
    source_root: Path = DEFAULT_SOURCE_ROOT
    status_name: str = DEFAULT_STATUS_NAME
    extensions: tuple[str, ...] = field(default=DEFAULT_EXTENSIONS)
    read_batch_size: int = 100
    check_batch_size: int = 512
    detect_changes: bool = True
    force_merge: int = 0
    per_page: int = 15
    timeout: float = 30.0
    show_budget: int = 50
    context_radius: int = 2

    def __post_init__(self) -> None:
        self.source_root = Path(self.source_root)
        if self.read_batch_size < 1 or self.check_batch_size < 1:
            raise ConfigError("Batch sizes must be at least 1")
        if self.per_page < 1:
            raise ConfigError("per_page must be at least 1")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "AppConfig":
        """Build a config from ``SOURCEFINDER_*`` environment variables.

        Keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        values = {
            "engine_url": env.get("SOURCEFINDER_ENGINE_URL") or DEFAULT_ENGINE_URL,
            "index_name": env.get("SOURCEFINDER_INDEX") or DEFAULT_INDEX_NAME,
            "source_root": Path(env.get("SOURCEFINDER_SOURCE_ROOT") or DEFAULT_SOURCE_ROOT),
            # Any non-empty value forces full resubmission
            "detect_changes": not env.get("SOURCEFINDER_OVERWRITE"),
            "force_merge": _env_int(env, "SOURCEFINDER_FORCE_MERGE", 0),
            "timeout": _env_float(env, "SOURCEFINDER_TIMEOUT", 30.0),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def resolve_source_root(self, base_dir: Path | None = None) -> Path:
        if self.source_root.is_absolute() or base_dir is None:
            return self.source_root
        return base_dir / self.source_root

    @property
    def status_path(self) -> Path:
        return self.source_root / self.status_name
