"""
Runtime configuration for Wikimem.

Values come from the environment (optionally seeded from a .env file).
Priority: environment variables > .env > defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from platformdirs import user_data_dir

MEMORIES_DIR = "memories"
DEFAULT_APP_IDENTIFIER = "com.wikimem.app"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3926
ID_STRATEGIES = ("slug", "timestamp")

_dotenv_path = find_dotenv(usecwd=True)
if _dotenv_path:
    load_dotenv(_dotenv_path)


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    """Read int env with a safe fallback."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    value = str(os.getenv(name) or "").strip()
    return value if value else default


@dataclass(frozen=True)
class Settings:
    data_dir: Optional[Path] = None
    app_identifier: str = DEFAULT_APP_IDENTIFIER
    id_strategy: str = "slug"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    event_queue_size: int = 100

    def memories_dir(self) -> Path:
        """
        Resolve the memories directory.

        An explicit WIKIMEM_DATA_DIR wins; otherwise the platform
        application-data root joined with the app identifier.
        """
        if self.data_dir is not None:
            return self.data_dir
        return Path(user_data_dir(appname=self.app_identifier, appauthor=False)) / MEMORIES_DIR

    @property
    def mcp_url(self) -> str:
        return f"http://{self.host}:{self.port}/mcp"


def load_settings() -> Settings:
    raw_dir = str(os.getenv("WIKIMEM_DATA_DIR") or "").strip()
    id_strategy = _env_str("WIKIMEM_ID_STRATEGY", "slug").lower()
    if id_strategy not in ID_STRATEGIES:
        id_strategy = "slug"
    return Settings(
        data_dir=Path(raw_dir).expanduser() if raw_dir else None,
        app_identifier=_env_str("WIKIMEM_APP_IDENTIFIER", DEFAULT_APP_IDENTIFIER),
        id_strategy=id_strategy,
        host=_env_str("WIKIMEM_HOST", DEFAULT_HOST),
        port=_env_int("WIKIMEM_PORT", DEFAULT_PORT, minimum=1),
        log_level=_env_str("WIKIMEM_LOG_LEVEL", "INFO").upper(),
        event_queue_size=_env_int("WIKIMEM_EVENT_QUEUE_SIZE", 100, minimum=1),
    )


def setup_logging(level: str) -> None:
    # stdout belongs to the stdio transport, so everything goes to stderr.
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
