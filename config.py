"""
Configuration settings for the strategy runtime.

Uses Pydantic Settings for environment variable management with .env file support.
Every component accepts explicit overrides; these values are the fallbacks.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables (STRATEGY_RUNTIME_*)."""

    model_config = SettingsConfigDict(
        env_prefix="STRATEGY_RUNTIME_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Identity
    # ========================================
    runtime_id: str = Field(
        default="pci-strategy-runtime",
        description="Source tag carried by cross-frame resize messages",
    )
    type_identifier: str = Field(
        default="strategy-runtime",
        description="Identifier the runtime registers under with the host",
    )

    # ========================================
    # Configuration resolution
    # ========================================
    default_strategy: str = Field(
        default="text-entry",
        description="Strategy used when property-derived config names none",
    )
    config_base_url: str | None = Field(
        default=None,
        description="Base URL that relative configHref values are joined to",
    )
    fetch_timeout_seconds: float | None = Field(
        default=None,
        description="Timeout for fetching configHref (unset = wait indefinitely)",
    )

    # ========================================
    # Strategy loading
    # ========================================
    strategy_module_prefix: str = Field(
        default="strategy_",
        description="Prefix prepended to a strategy name to form its module name",
    )
    strategy_packages: str = Field(
        default="src.strategy_runtime.strategies",
        description="Comma-separated packages searched for strategy modules",
    )
    strategy_load_timeout_seconds: float | None = Field(
        default=None,
        description="Timeout for resolving a strategy module (unset = wait indefinitely)",
    )

    # ========================================
    # Resize negotiation
    # ========================================
    resize_buffer_px: int = Field(
        default=20,
        description="Visual buffer added to the measured content height",
    )
    resize_settle_delay_seconds: float = Field(
        default=0.2,
        description="Delay before the post-ready resize notification",
    )
    feedback_resize_delay_seconds: float = Field(
        default=0.05,
        description="Delay before a strategy-requested resize notification",
    )
    resize_channels: str = Field(
        default="style,event,callback,frame",
        description="Comma-separated resize channels to enable",
    )
    frame_target_origin: str = Field(
        default="*",
        description="Target origin for cross-frame resize messages",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="Log level for the CLI stderr sink",
    )

    def get_strategy_packages(self) -> list[str]:
        """Get strategy search packages as a list."""
        return [p.strip() for p in self.strategy_packages.split(",") if p.strip()]

    def get_resize_channels(self) -> list[str]:
        """Get enabled resize channel names as a list."""
        return [c.strip().lower() for c in self.resize_channels.split(",") if c.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
