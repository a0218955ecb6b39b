"""
Configuration helpers for the catalog store and search tuning.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any


DEFAULT_DB_PATH = "~/.catalog_search/catalog.duckdb"
ENV_DB_PATH = "CATALOG_SEARCH_DB_PATH"
ENV_PREFIX = "CATALOG_SEARCH_"


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB catalog path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) CATALOG_SEARCH_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


@dataclass(frozen=True)
class SearchConfig:
    """Tunable thresholds and limits for the search engine."""

    # A field must score strictly above this to count as a match.
    match_threshold: float = 0.3
    suggestion_threshold: float = 0.25
    did_you_mean_threshold: float = 0.6

    default_limit: int = 50
    max_suggestions: int = 8
    max_did_you_mean: int = 5
    max_related_searches: int = 5

    cancel_check_interval: int = 2000
    search_timeout_ms: int = 5000

    cache_ttl_seconds: int = 120
    cache_max_entries: int = 1024
    snapshot_ttl_seconds: int = 300

    def __post_init__(self) -> None:
        for name in ("match_threshold", "suggestion_threshold", "did_you_mean_threshold"):
            value = getattr(self, name)
            if not 0 <= value <= 10:
                raise ValueError(f"{name} must be between 0 and 10, got {value}")
        if not 6 <= self.max_suggestions <= 10:
            raise ValueError("max_suggestions must be between 6 and 10")
        for name in (
            "default_limit",
            "max_did_you_mean",
            "cancel_check_interval",
            "search_timeout_ms",
            "cache_max_entries",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.cache_ttl_seconds < 0 or self.snapshot_ttl_seconds < 0:
            raise ValueError("TTL values must be >= 0")

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Load configuration from CATALOG_SEARCH_* environment variables."""
        defaults = cls()
        return cls(
            match_threshold=_env_float("MATCH_THRESHOLD", defaults.match_threshold),
            suggestion_threshold=_env_float(
                "SUGGESTION_THRESHOLD", defaults.suggestion_threshold
            ),
            did_you_mean_threshold=_env_float(
                "DID_YOU_MEAN_THRESHOLD", defaults.did_you_mean_threshold
            ),
            default_limit=_env_int("DEFAULT_LIMIT", defaults.default_limit),
            max_suggestions=_env_int("MAX_SUGGESTIONS", defaults.max_suggestions),
            max_did_you_mean=defaults.max_did_you_mean,
            max_related_searches=defaults.max_related_searches,
            cancel_check_interval=_env_int(
                "CANCEL_CHECK_INTERVAL", defaults.cancel_check_interval
            ),
            search_timeout_ms=_env_int("SEARCH_TIMEOUT_MS", defaults.search_timeout_ms),
            cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", defaults.cache_ttl_seconds),
            cache_max_entries=_env_int("CACHE_MAX_ENTRIES", defaults.cache_max_entries),
            snapshot_ttl_seconds=_env_int(
                "SNAPSHOT_TTL_SECONDS", defaults.snapshot_ttl_seconds
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc
