from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from whoop_mcp.constants import (
    CONFIG_DIRNAME,
    DEFAULT_REDIRECT_URI,
    DEFAULT_SCOPES,
    TOKEN_FILENAME,
)


def _find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward until we find pyproject.toml or .git.
    """
    start = start.resolve()
    for p in (start, *start.parents):
        if (p / "pyproject.toml").exists() or (p / ".git").exists():
            return p
    return None


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


@lru_cache(maxsize=1)
def load_env_once() -> Optional[Path]:
    """
    Load dotenv exactly once. Precedence:
      1) WHOOP_ENV_FILE (explicit path)
      2) <repo root>/.env, searched upward from the working directory
    """
    candidates = []

    explicit = os.getenv("WHOOP_ENV_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    root = _find_repo_root(Path.cwd())
    if root:
        candidates.append(root / ".env")

    for p in candidates:
        if p.exists() and p.is_file():
            # Do NOT override already-set environment variables
            load_dotenv(dotenv_path=str(p), override=False)
            return p

    return None


def home_dir() -> Path:
    """
    Home directory used for per-user state.
    Order: WHOOP_HOME, HOME, USERPROFILE, current directory.
    """
    for name in ("WHOOP_HOME", "HOME", "USERPROFILE"):
        value = os.getenv(name)
        if value:
            return Path(value).expanduser()
    return Path(".")


def config_dir() -> Path:
    """Per-user configuration folder (~/.whoop-mcp)."""
    return home_dir() / CONFIG_DIRNAME


def token_path() -> Path:
    """
    Token file location. Override with WHOOP_TOKEN_PATH.
    """
    p = os.getenv("WHOOP_TOKEN_PATH")
    if p:
        return Path(p).expanduser()
    return config_dir() / TOKEN_FILENAME


def telemetry_dir() -> Path:
    """
    Default telemetry dir. Override with WHOOP_TELEMETRY_DIR.
    """
    p = os.getenv("WHOOP_TELEMETRY_DIR")
    if p:
        return Path(p).expanduser()
    return config_dir() / "telemetry"


def telemetry_disabled() -> bool:
    return os.getenv("WHOOP_DISABLE_TELEMETRY", "0").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class WhoopSettings:
    """OAuth client configuration and HTTP defaults, read from the environment."""

    client_id: Optional[str]
    client_secret: Optional[str]
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scopes: str = DEFAULT_SCOPES
    token_path: Path = Path(CONFIG_DIRNAME) / TOKEN_FILENAME
    connect_timeout: float = 3.05
    read_timeout: float = 30.0

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)

    @classmethod
    def from_env(cls) -> "WhoopSettings":
        return cls(
            client_id=os.getenv("WHOOP_CLIENT_ID") or None,
            client_secret=os.getenv("WHOOP_CLIENT_SECRET") or None,
            redirect_uri=os.getenv("WHOOP_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
            scopes=os.getenv("WHOOP_SCOPES") or DEFAULT_SCOPES,
            token_path=token_path(),
            connect_timeout=_env_float("WHOOP_HTTP_CONNECT_TIMEOUT", 3.05),
            read_timeout=_env_float("WHOOP_HTTP_READ_TIMEOUT", 30.0),
        )


def configure_logging() -> None:
    """
    Configure logging explicitly. No import-time side effects.
    Idempotent: if logging is already configured, do nothing.

    Logs go to stderr; stdout carries the MCP stdio protocol.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = os.getenv("WHOOP_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = os.getenv(
        "WHOOP_LOG_FORMAT",
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logging.basicConfig(level=level, format=fmt, stream=sys.stderr)


def init_runtime(*, configure_logs: bool = True, load_env: bool = True) -> None:
    """
    Call this from entrypoints only (servers, scripts).
    """
    if load_env:
        load_env_once()
    if configure_logs:
        configure_logging()
