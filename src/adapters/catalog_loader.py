"""Badge catalog loading (stellar.toml).

The quest issuer publishes every badge in the `[[CURRENCIES]]` array of its
stellar.toml. Only quest codes (`SQ...`/`SSQ...`) are kept, one entry per
code (first wins).
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from adapters.http_client import build_async_client, fetch_text
from core.config import AppSettings
from core.domain.errors import CatalogError
from core.domain.models import BadgeDefinition, dedupe_badges

logger = logging.getLogger(__name__)

QUEST_PREFIXES = ("SQ", "SSQ")


class CatalogCurrency(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str = ""
    issuer: str = ""
    image: str = ""
    tag: str = ""


class CatalogFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    currencies: list[CatalogCurrency] = Field(default_factory=list, alias="CURRENCIES")


def parse_catalog(text: str) -> list[BadgeDefinition]:
    """Quest badges listed in a stellar.toml document."""

    try:
        data = tomllib.loads(text)
        catalog_file = CatalogFile.model_validate(data)
    except (tomllib.TOMLDecodeError, ValidationError) as exc:
        raise CatalogError(f"invalid catalog descriptor: {exc}") from exc

    badges = [
        BadgeDefinition(code=c.code, issuer=c.issuer, image_url=c.image, tag=c.tag)
        for c in catalog_file.currencies
        if c.code.startswith(QUEST_PREFIXES) and c.issuer and len(c.code) <= 12
    ]
    return dedupe_badges(badges)


async def load_catalog(
    settings: AppSettings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> list[BadgeDefinition]:
    """Load the catalog from `settings.catalog_path` or `settings.catalog_url`."""

    settings = settings or AppSettings()

    if settings.catalog_path is not None:
        text = _read_local(settings.catalog_path)
    elif client is not None:
        text = await _fetch_remote(client, settings.catalog_url)
    else:
        async with build_async_client(settings) as owned_client:
            text = await _fetch_remote(owned_client, settings.catalog_url)

    badges = parse_catalog(text)
    logger.info("loaded %d quest badges", len(badges))
    return badges


def _read_local(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError(f"cannot read catalog {path}: {exc}") from exc


async def _fetch_remote(client: httpx.AsyncClient, url: str) -> str:
    try:
        return await fetch_text(client, url)
    except httpx.HTTPError as exc:
        raise CatalogError(f"cannot fetch catalog {url}: {exc}") from exc
