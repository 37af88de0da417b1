# distribution_hub/settings.py
"""
Distribution Hub Settings - PostgreSQL, listing and cache configuration.
"""
from __future__ import annotations
from pathlib import Path
from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    # =========================================================================
    # PostgreSQL Database
    # =========================================================================
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "DH_DATABASE_URL"),
        description="Full async SQLAlchemy URL; overrides the DB_* parts",
    )
    DB_HOST: str = Field(default="localhost", validation_alias="DB_HOST")
    DB_PORT: int = Field(default=5432, validation_alias="DB_PORT")
    DB_NAME: str = Field(default="distribution_hub", validation_alias="DB_NAME")
    DB_USER: str = Field(default="postgres", validation_alias="DB_USER")
    DB_PASSWORD: str = Field(default="postgres", validation_alias="DB_PASSWORD")

    # Connection pool settings
    DB_POOL_SIZE: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    DB_ECHO: bool = Field(default=False, validation_alias="DB_ECHO")

    # =========================================================================
    # Logging
    # =========================================================================
    LOG_DIR: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "logs"),
        validation_alias=AliasChoices("LOG_DIR", "DH_LOG_DIR"),
    )
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # =========================================================================
    # Listings
    # =========================================================================
    CUSTOMERS_PER_PAGE: int = Field(default=50, gt=0)
    PRODUCTS_PER_PAGE: int = Field(default=50, gt=0)
    CUSTOMER_LISTING_STRATEGY: Literal["joined", "split"] = Field(
        default="joined",
        description="joined = one outer-join query; split = legacy two-query union",
    )

    # =========================================================================
    # Feature Flags
    # =========================================================================
    REACTIVATE_CHECKS_UNIQUENESS: bool = Field(
        default=False,
        description="Re-check SKU/barcode against non-obsolete rows on reactivate",
    )

    # =========================================================================
    # Query cache
    # =========================================================================
    LIST_CACHE_TTL_SECONDS: float = Field(default=30.0, ge=0)
    STATS_CACHE_TTL_SECONDS: float = Field(default=60.0, ge=0)
    CACHE_MAX_ENTRIES: int = Field(default=1024, gt=0)

    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173", "http://127.0.0.1:5173"],
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
