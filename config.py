"""Application settings using Pydantic Settings.

Every value can be overridden with a TAX_ESTIMATOR_ prefixed environment
variable, e.g. TAX_ESTIMATOR_FETCH_TIMEOUT=5.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TAX_ESTIMATOR_",
        extra="ignore",
    )

    # Bracket data source
    tax_data_base_url: Optional[str] = Field(
        default=None,
        description="Base URL holding irs.tax-rates.<year>.json; built-in URLs are used when unset",
    )
    fetch_timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")
    prefetch: bool = Field(default=False, description="Load the default year's tables at startup")
    default_year: int = Field(default=2026)

    # Web
    cors_origins: List[str] = Field(default=["*"])
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5001)

    log_level: str = Field(default="INFO")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
