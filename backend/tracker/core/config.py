import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger("config")


class SourceKind(str, Enum):
    """Which README layout a source publishes. Selects the extractor."""

    VANSH = "vansh"
    SIMPLIFY = "simplify"


@dataclass(frozen=True)
class SourceConfig:
    owner: str
    repo: str
    path: str
    kind: SourceKind

    @property
    def source(self) -> str:
        # Postings are tagged with the repository owner
        return self.owner


DEFAULT_SOURCES: Tuple[SourceConfig, ...] = (
    SourceConfig(
        owner="vanshb03",
        repo="Summer2026-Internships",
        path="README.md",
        kind=SourceKind.VANSH,
    ),
    SourceConfig(
        owner="SimplifyJobs",
        repo="Summer2026-Internships",
        path="README.md",
        kind=SourceKind.SIMPLIFY,
    ),
)


@dataclass(frozen=True)
class IngestionConfig:
    sources: Tuple[SourceConfig, ...] = DEFAULT_SOURCES
    retention_days: int = 14
    github_token: Optional[str] = None
    http_timeout_s: int = 30


@dataclass(frozen=True)
class RuntimeConfig:
    db_path: str
    retention_days: int
    http_timeout_s: int
    default_page_size: int
    max_page_size: int
    scheduler_mode: str
    refresh_interval_minutes: int
    github_token: Optional[str] = None
    cron_secret: Optional[str] = None
    sources: Tuple[SourceConfig, ...] = field(default=DEFAULT_SOURCES)


def get_db_path() -> str:
    raw = os.environ.get("DB_PATH", "./internship_tracker.sqlite3")
    return os.path.abspath(raw)


def _parse_int_with_floor(
    env_name: str,
    *,
    default_value: int,
    minimum_floor: int,
) -> int:
    raw = os.getenv(env_name)
    if raw is None or not str(raw).strip():
        value = int(default_value)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            logger.warning(
                "[config] %s=%r is invalid. Using default %s.",
                env_name,
                raw,
                default_value,
            )
            value = int(default_value)

    if value < minimum_floor:
        logger.warning(
            "[config] %s=%s below minimum (%s). Using %s.",
            env_name,
            value,
            minimum_floor,
            minimum_floor,
        )
        value = minimum_floor

    return value


def _parse_choice(env_name: str, *, default_value: str, choices: Tuple[str, ...]) -> str:
    raw = (os.getenv(env_name) or "").strip().lower()
    if not raw:
        return default_value
    if raw not in choices:
        logger.warning(
            "[config] %s=%r is not one of %s. Using default %s.",
            env_name,
            raw,
            "|".join(choices),
            default_value,
        )
        return default_value
    return raw


def _optional_str(env_name: str) -> Optional[str]:
    raw = os.getenv(env_name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def load_sources_file(path: str) -> Tuple[SourceConfig, ...]:
    """
    Loads a JSON list of {owner, repo, path, kind} objects.
    """
    if not path:
        raise ValueError("sources path is required")

    abs_path = os.path.abspath(path)
    if not os.path.exists(abs_path):
        raise FileNotFoundError(f"Sources file not found: {abs_path}")

    with open(abs_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Sources file must contain a JSON list: {abs_path}")

    sources: List[SourceConfig] = []
    for entry in data:
        sources.append(_source_from_dict(entry))
    return tuple(sources)


def _source_from_dict(entry: Dict[str, Any]) -> SourceConfig:
    missing = [k for k in ("owner", "repo", "kind") if not str(entry.get(k) or "").strip()]
    if missing:
        raise ValueError(f"Source entry missing {', '.join(missing)}: {entry!r}")
    return SourceConfig(
        owner=str(entry["owner"]).strip(),
        repo=str(entry["repo"]).strip(),
        path=str(entry.get("path") or "README.md").strip(),
        kind=SourceKind(str(entry["kind"]).strip().lower()),
    )


def load_runtime_config() -> RuntimeConfig:
    max_page_size = _parse_int_with_floor("MAX_PAGE_SIZE", default_value=200, minimum_floor=1)
    default_page_size = min(
        _parse_int_with_floor("DEFAULT_PAGE_SIZE", default_value=25, minimum_floor=1),
        max_page_size,
    )

    sources_path = _optional_str("SOURCES_CONFIG_PATH")
    sources = load_sources_file(sources_path) if sources_path else DEFAULT_SOURCES

    cfg = RuntimeConfig(
        db_path=get_db_path(),
        retention_days=_parse_int_with_floor("RETENTION_DAYS", default_value=14, minimum_floor=1),
        http_timeout_s=_parse_int_with_floor("HTTP_TIMEOUT_S", default_value=30, minimum_floor=1),
        default_page_size=default_page_size,
        max_page_size=max_page_size,
        scheduler_mode=_parse_choice(
            "SCHEDULER_MODE",
            default_value="off",
            choices=("off", "loop", "cron"),
        ),
        refresh_interval_minutes=_parse_int_with_floor(
            "REFRESH_INTERVAL_MINUTES",
            default_value=60,
            minimum_floor=1,
        ),
        github_token=_optional_str("GITHUB_TOKEN"),
        cron_secret=_optional_str("CRON_SECRET"),
        sources=sources,
    )

    logger.info(
        "[config] effective RETENTION_DAYS=%s SCHEDULER_MODE=%s REFRESH_INTERVAL_MINUTES=%s sources=%s",
        cfg.retention_days,
        cfg.scheduler_mode,
        cfg.refresh_interval_minutes,
        ",".join(f"{s.owner}/{s.repo}" for s in cfg.sources),
    )
    return cfg


@lru_cache(maxsize=1)
def get_runtime_config() -> RuntimeConfig:
    return load_runtime_config()


def ingestion_config_from(cfg: RuntimeConfig) -> IngestionConfig:
    return IngestionConfig(
        sources=cfg.sources,
        retention_days=cfg.retention_days,
        github_token=cfg.github_token,
        http_timeout_s=cfg.http_timeout_s,
    )
