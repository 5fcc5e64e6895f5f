# config.py

"""Application configuration utilities.

Values are loaded from an optional ``config.json`` located alongside this file
and may be overridden by environment variables. The :func:`get_settings`
helper merges the two sources and caches the result.
"""

from __future__ import annotations

import json
import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./storefront.db"
    pricing_hash_secret: str = "dev-pricing-secret"
    sales_tax_name: str = "Sales Tax"
    sales_tax_rate: Decimal = Decimal("0.0875")
    service_fee_name: str = "Service Fee"
    service_fee_rate: Decimal = Decimal("0.03")
    tip_preset_percents: list[int] = [0, 15, 18, 20, 25]
    log_level: str = "INFO"
    log_sample_2xx: float = 1.0


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    ``config.json`` is optional; when present its values are fed into
    :class:`Settings` and environment variables override them.
    """

    config_path = Path(__file__).with_name("config.json")
    data = json.loads(config_path.read_text()) if config_path.exists() else {}
    env_override = {
        k.lower(): v
        for k, v in os.environ.items()
        if k.lower() in Settings.model_fields
    }
    merged = {**data, **env_override}
    return Settings(**merged)
