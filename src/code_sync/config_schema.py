"""Unified configuration schema for code-sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for the document store, the sync loop and logging.

Usage:
    from code_sync.config_schema import UnifiedConfig, build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_DATABASE = "code_sync"
DEFAULT_INTERVAL = 30.0
DEFAULT_IGNORE = [".env", "output", "dist", "target", "build"]


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class StoreConfig(BaseModel):
    """MongoDB connection settings.

    All fields are optional so env vars and CLI args can supply them.
    """

    uri: str | None = Field(default=None, description="MongoDB URI")
    database: str = Field(
        default=DEFAULT_DATABASE, description="Database name"
    )
    server_selection_timeout_ms: int = Field(
        default=5000,
        ge=100,
        le=600_000,
        description="How long to wait for a reachable server (ms)",
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """What to mirror and how often."""

    project: str | None = Field(
        default=None, description="Collection name for this project"
    )
    directory: str | None = Field(
        default=None, description="Directory to mirror"
    )
    interval: float = Field(
        default=DEFAULT_INTERVAL,
        gt=0,
        description="Seconds between cycles",
    )
    ignore: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE),
        description="Path fragments excluded from sync",
    )
    max_workers: int = Field(
        default=4, ge=1, le=64, description="File read threads (1-64)"
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Retries per store call on transient errors (0-20)",
    )
    retry_backoff: float = Field(
        default=1.0,
        ge=0,
        description="Initial retry delay in seconds, doubled per retry",
    )
    max_consecutive_failures: int = Field(
        default=5,
        ge=0,
        description="Failed cycles tolerated in a row before exiting",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(
        default="text", description="Log line format"
    )

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration.

    Every section has defaults, so ``UnifiedConfig()`` is always valid.
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from ``load_hierarchical_config()`` output.

    Missing sections get defaults.

    Raises:
        pydantic.ValidationError: If a section has invalid values.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
