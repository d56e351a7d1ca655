"""Runtime configuration for the code-sync daemon.

Reads settings from CLI args, environment variables, .env files, and
YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    MONGODB_URI: MongoDB connection string (required)
    CODE_SYNC_DATABASE: Database name (optional, default: code_sync)
    CODE_SYNC_PROJECT: Project / collection name (required)
    CODE_SYNC_DIRECTORY: Directory to mirror (required)
    CODE_SYNC_INTERVAL: Seconds between cycles (optional, default: 30)
    CODE_SYNC_IGNORE: Comma-separated ignored path fragments (optional)
    CODE_SYNC_MAX_WORKERS: File read threads (optional, default: 4)
    CODE_SYNC_MAX_RETRIES: Retries per store call (optional, default: 3)
    CODE_SYNC_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config_schema import (
    DEFAULT_DATABASE,
    DEFAULT_IGNORE,
    DEFAULT_INTERVAL,
    UnifiedConfig,
)

logger = logging.getLogger(__name__)

_URI_SCHEMES = ("mongodb://", "mongodb+srv://")
_MAX_COLLECTION_NAME = 120


@dataclass
class Config:
    mongodb_uri: str
    project: str
    directory: str
    database: str = DEFAULT_DATABASE
    ignored: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    interval: float = DEFAULT_INTERVAL
    max_workers: int = 4
    max_retries: int = 3
    retry_backoff: float = 1.0
    max_consecutive_failures: int = 5
    server_selection_timeout_ms: int = 5000
    debug: bool = False


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.  ``mongodb_uri``, ``project``
            and ``directory`` are normalised in place.

    Raises:
        ValueError: If the URI, collection name, directory or a numeric
            setting is invalid.
    """
    config.mongodb_uri = config.mongodb_uri.strip()
    if not config.mongodb_uri.startswith(_URI_SCHEMES):
        raise ValueError(
            "Invalid MongoDB URI: must start with mongodb:// or mongodb+srv://"
        )

    config.project = config.project.strip()
    _validate_collection_name(config.project)

    if not config.database.strip() or any(
        c in config.database for c in '/\\. "$'
    ):
        raise ValueError(
            f"Invalid database name '{config.database}'"
        )

    directory = Path(config.directory).expanduser()
    if not directory.is_dir():
        raise ValueError(
            f"Directory not found: '{config.directory}'. "
            "Pass --directory or set CODE_SYNC_DIRECTORY."
        )
    config.directory = str(directory.resolve())

    if config.interval <= 0:
        raise ValueError(
            f"Invalid interval {config.interval}: must be greater than 0"
        )
    if not (1 <= config.max_workers <= 64):
        raise ValueError(
            f"Invalid max_workers {config.max_workers}: must be between 1 and 64"
        )
    if config.max_retries < 0:
        raise ValueError(
            f"Invalid max_retries {config.max_retries}: must be 0 or more"
        )

    if not config.ignored:
        logger.warning("Ignore list is empty: every file under the root will sync")


def _validate_collection_name(name: str) -> None:
    """Apply MongoDB's collection naming rules."""
    if not name:
        raise ValueError(
            "Project name cannot be empty. Pass --project or set CODE_SYNC_PROJECT."
        )
    if "$" in name or "\x00" in name:
        raise ValueError(
            f"Invalid project name '{name}': cannot contain '$' or null bytes"
        )
    if name.startswith("system."):
        raise ValueError(
            f"Invalid project name '{name}': 'system.' prefix is reserved"
        )
    if len(name) > _MAX_COLLECTION_NAME:
        raise ValueError(
            f"Invalid project name '{name}': longer than {_MAX_COLLECTION_NAME} characters"
        )


def yaml_fallbacks_from(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten the ``store`` and ``sync`` sections into ``load_config`` fallbacks.

    ``None`` values are dropped so they never shadow env vars.
    """
    merged = {**unified.store.model_dump(), **unified.sync.model_dump()}
    return {k: v for k, v in merged.items() if v is not None}


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _get_number_env(key: str, kind: type, low: float, high: float) -> Any:
    """Parse a bounded numeric env var, or return None if unset."""
    raw = os.getenv(key)
    if raw is None:
        return None
    try:
        value = kind(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {key} '{raw}': must be a number between {low} and {high}"
        ) from None
    if not (low <= value <= high):
        raise ValueError(
            f"Invalid {key} '{raw}': must be a number between {low} and {high}"
        )
    return value


def load_config(
    project: str | None = None,
    directory: str | None = None,
    uri: str | None = None,
    database: str | None = None,
    interval: float | None = None,
    ignored: list[str] | None = None,
    max_workers: int | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        project: Override project / collection name.
        directory: Override directory to mirror.
        uri: Override MongoDB URI.
        database: Override database name.
        interval: Override cycle interval in seconds.
        ignored: Override ignored path fragments (replaces the defaults).
        max_workers: Override file read thread count.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of YAML values (see
            ``yaml_fallbacks_from``), used when CLI arg and env var are
            both unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required config (URI, project, directory) is missing
            after checking all sources, or any value is invalid.
    """
    fb = yaml_fallbacks or {}

    # --- Required strings: CLI > env > YAML > error ---

    final_uri = uri or os.getenv("MONGODB_URI") or fb.get("uri")
    if not final_uri:
        raise ValueError(
            "MongoDB URI not found. Set MONGODB_URI environment variable, "
            "pass --uri CLI argument, or add 'store.uri' to config.yml."
        )

    final_project = project or os.getenv("CODE_SYNC_PROJECT") or fb.get("project")
    if not final_project:
        raise ValueError(
            "Project name not found. Set CODE_SYNC_PROJECT environment variable, "
            "pass --project CLI argument, or add 'sync.project' to config.yml."
        )

    final_directory = (
        directory or os.getenv("CODE_SYNC_DIRECTORY") or fb.get("directory")
    )
    if not final_directory:
        raise ValueError(
            "Directory not found. Set CODE_SYNC_DIRECTORY environment variable, "
            "pass --directory CLI argument, or add 'sync.directory' to config.yml."
        )

    final_database = (
        database
        or os.getenv("CODE_SYNC_DATABASE")
        or fb.get("database")
        or DEFAULT_DATABASE
    )

    # --- Lists: CLI > env (comma-separated) > YAML > default ---

    if ignored is not None:
        final_ignored = list(ignored)
    elif os.getenv("CODE_SYNC_IGNORE") is not None:
        final_ignored = [
            part.strip()
            for part in os.environ["CODE_SYNC_IGNORE"].split(",")
            if part.strip()
        ]
    else:
        final_ignored = list(fb.get("ignore", DEFAULT_IGNORE))

    # --- Numbers: CLI > env > YAML > default ---

    if interval is not None:
        final_interval = float(interval)
    else:
        env_interval = _get_number_env(
            "CODE_SYNC_INTERVAL", float, 0.001, 86400
        )
        final_interval = (
            env_interval
            if env_interval is not None
            else float(fb.get("interval", DEFAULT_INTERVAL))
        )

    if max_workers is not None:
        final_workers = int(max_workers)
    else:
        env_workers = _get_number_env("CODE_SYNC_MAX_WORKERS", int, 1, 64)
        final_workers = (
            env_workers
            if env_workers is not None
            else int(fb.get("max_workers", 4))
        )

    env_retries = _get_number_env("CODE_SYNC_MAX_RETRIES", int, 0, 20)
    final_retries = (
        env_retries if env_retries is not None else int(fb.get("max_retries", 3))
    )

    # --- Booleans: CLI > env > default ---

    if debug:
        final_debug = True
    else:
        final_debug = bool(_get_bool_env("CODE_SYNC_DEBUG"))

    config = Config(
        mongodb_uri=final_uri,
        project=final_project,
        directory=final_directory,
        database=final_database,
        ignored=final_ignored,
        interval=final_interval,
        max_workers=final_workers,
        max_retries=final_retries,
        retry_backoff=float(fb.get("retry_backoff", 1.0)),
        max_consecutive_failures=int(fb.get("max_consecutive_failures", 5)),
        server_selection_timeout_ms=int(
            fb.get("server_selection_timeout_ms", 5000)
        ),
        debug=final_debug,
    )

    validate_config(config)

    return config
