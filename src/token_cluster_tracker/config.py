"""Configuration management with Pydantic Settings.

This module provides centralized configuration for the Token Cluster
Tracker, loading and validating environment variables on first use.
Scoring weights and classification thresholds are fixed module constants
of the detector and profiler packages and are intentionally not exposed here.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_ENV_FILE = ".env"
_ENV_FILE_ENCODING = "utf-8"


def _parse_labeled_addresses(v: object, *, name: str) -> dict[str, str]:
    """Parse ``addr=label,addr2=label2`` (or a mapping) into a lower-cased dict."""
    if v is None or v == "":
        return {}
    if isinstance(v, dict):
        return {str(k).lower(): str(label) for k, label in v.items()}
    if isinstance(v, str):
        parsed: dict[str, str] = {}
        for part in v.split(","):
            part = part.strip()
            if not part:
                continue
            address, _, label = part.partition("=")
            address = address.strip().lower()
            if not address.startswith("0x"):
                raise ValueError(f"{name} entries must be 0x addresses, got {address!r}")
            parsed[address] = label.strip() or "Contract"
        return parsed
    raise TypeError(f"Invalid {name} type")


class AnalyzerSettings(BaseSettings):
    """Holdings analyzer settings."""

    model_config = SettingsConfigDict(env_prefix="ANALYZER_", extra="ignore", populate_by_name=True)

    token_symbol: str = Field(
        default="TOKEN",
        alias="ANALYZER_TOKEN_SYMBOL",
        description="Symbol used in risk flags, narrative and exported reports",
    )
    default_decimals: int = Field(
        default=18,
        alias="ANALYZER_DEFAULT_DECIMALS",
        ge=0,
        le=36,
        description="Token decimals used when the transfer set carries none",
    )
    recent_dispersal_days: int = Field(
        default=7,
        alias="ANALYZER_RECENT_DISPERSAL_DAYS",
        ge=1,
        le=365,
        description="Trailing window (days) for the recent-dispersal risk flag",
    )
    extra_dex_routers: Annotated[dict[str, str], NoDecode] = Field(
        default_factory=dict,
        alias="ANALYZER_EXTRA_DEX_ROUTERS",
        description="Additional DEX routers / pairs as comma-separated address=label pairs",
    )
    ecosystem_contracts: Annotated[dict[str, str], NoDecode] = Field(
        default_factory=dict,
        alias="ANALYZER_ECOSYSTEM_CONTRACTS",
        description="Non-DEX contracts (staking, vaults) as comma-separated address=label pairs",
    )

    @field_validator("extra_dex_routers", mode="before")
    @classmethod
    def _parse_extra_dex_routers(cls, v: object) -> dict[str, str]:
        return _parse_labeled_addresses(v, name="ANALYZER_EXTRA_DEX_ROUTERS")

    @field_validator("ecosystem_contracts", mode="before")
    @classmethod
    def _parse_ecosystem_contracts(cls, v: object) -> dict[str, str]:
        return _parse_labeled_addresses(v, name="ANALYZER_ECOSYSTEM_CONTRACTS")

    @field_validator("token_symbol")
    @classmethod
    def validate_token_symbol(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("ANALYZER_TOKEN_SYMBOL must not be empty")
        return v


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files.

    Example:
        ```python
        from token_cluster_tracker.config import get_settings

        settings = get_settings()
        print(settings.analyzer.token_symbol)
        print(settings.log_level)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding=_ENV_FILE_ENCODING,
        extra="ignore",
    )

    # NOTE: nested BaseSettings must be given the same env_file, otherwise it
    # only reads from the process environment (and ignores `.env`).
    analyzer: AnalyzerSettings = Field(
        default_factory=lambda: AnalyzerSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def summary(self) -> dict[str, str]:
        """Get a flat summary of the effective settings for startup logging."""
        return {
            "token_symbol": self.analyzer.token_symbol,
            "default_decimals": str(self.analyzer.default_decimals),
            "recent_dispersal_days": str(self.analyzer.recent_dispersal_days),
            "extra_dex_routers": str(len(self.analyzer.extra_dex_routers)),
            "ecosystem_contracts": str(len(self.analyzer.ecosystem_contracts)),
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
