"""Core configuration.

Environment variables (`SQB_*`) and the per-user `.env` are read here so the
CLI and the adapters share one settings contract.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "quest-badges"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "quest-badges"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "quest-badges"
    return Path.home() / ".config" / "quest-badges"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Write/update variables in the user's global .env."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# quest-badges user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application configuration (prefix `SQB_`)."""

    model_config = SettingsConfigDict(
        env_prefix="SQB_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    horizon_url: str = Field(
        default="https://horizon.stellar.org/",
        min_length=8,
        description="Base URL of the Horizon ledger API.",
    )
    catalog_url: str = Field(
        default="https://quest.stellar.org/.well-known/stellar.toml",
        min_length=8,
        description="stellar.toml listing every quest badge (CURRENCIES).",
    )
    catalog_path: Path | None = Field(
        default=None,
        description="Local stellar.toml used instead of `catalog_url`.",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Per-request timeout (seconds).",
    )
    user_agent: str = Field(
        default="quest-badges/0.1 (+https://local)",
        min_length=1,
        description="User-Agent for ledger and catalog requests.",
    )

    page_limit: int = Field(
        default=200,
        ge=1,
        le=200,
        description="Records requested per page from Horizon.",
    )
    claimable_search_max_pages: int = Field(
        default=25,
        ge=1,
        description="Pages of issuer operations scanned before giving up on a claimable balance.",
    )
    claimable_search_max_concurrency: int = Field(
        default=8,
        ge=1,
        le=100,
        description="Concurrent claimable-balance searches during resolution.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Root log level (DEBUG, INFO, WARNING, ERROR).",
    )

    def horizon_endpoint(self, path: str) -> str:
        return self.horizon_url.rstrip("/") + "/" + path.lstrip("/")
