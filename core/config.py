"""
Runtime Configuration

Settings are read from environment variables. A `.env` file in the
project root is loaded first (existing environment variables win).

Keys:
- DSS_LOG_LEVEL: logging level name (default INFO)
- DSS_LOG_JSON: "1"/"true" for JSON log lines (default human-readable)
- DSS_FIRST_WEIGH_PROCESS_ID: registration process marker for first weights
- DSS_RUBRIC_PATH: optional JSON rubric file

Usage:
    from core.config import get_settings

    settings = get_settings()
    engine = FusionEngine(first_weigh_process_id=settings.first_weigh_process_id)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


REPO_ROOT = Path(__file__).resolve().parents[1]
ENV_PATH = REPO_ROOT / ".env"

DEFAULT_FIRST_WEIGH_PROCESS_ID = "BKB126"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""
    log_level: str = "INFO"
    log_json: bool = False
    first_weigh_process_id: str = DEFAULT_FIRST_WEIGH_PROCESS_ID
    rubric_path: Optional[Path] = None


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def load_settings(env_path: Optional[Path] = ENV_PATH) -> Settings:
    """
    Build settings from the environment.

    Args:
        env_path: Optional .env file to load before reading variables

    Returns:
        Settings instance
    """
    if env_path is not None and env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)

    rubric_path = os.getenv("DSS_RUBRIC_PATH")

    return Settings(
        log_level=os.getenv("DSS_LOG_LEVEL", "INFO").strip().upper(),
        log_json=_env_flag("DSS_LOG_JSON"),
        first_weigh_process_id=os.getenv(
            "DSS_FIRST_WEIGH_PROCESS_ID", DEFAULT_FIRST_WEIGH_PROCESS_ID
        ).strip(),
        rubric_path=Path(rubric_path) if rubric_path else None,
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get cached settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop cached settings (used by tests)."""
    global _settings
    _settings = None
