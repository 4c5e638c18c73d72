from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    ANNOTATE_ENV: str = "development"
    ANNOTATE_STORAGE_DRIVER: str = "local"
    ANNOTATE_STORAGE_LOCAL_DIR: str = ".data"
    ANNOTATE_S3_BUCKET: Optional[str] = None
    ANNOTATE_S3_REGION: Optional[str] = None
    ANNOTATE_S3_ACCESS_KEY: Optional[str] = None
    ANNOTATE_S3_SECRET_KEY: Optional[str] = None
    ANNOTATE_S3_ENDPOINT: Optional[str] = None
    ANNOTATE_S3_PREFIX: Optional[str] = None
    ANNOTATE_MAX_UPLOAD_MB: int = 25
    ANNOTATE_FETCH_TIMEOUT_S: float = 20.0
    # Estimated text box height as a multiple of the font size.
    ANNOTATE_TEXT_HEIGHT_FACTOR: float = 1.5
    ANNOTATE_TEXT_LINE_HEIGHT: float = 1.2
    ANNOTATE_BUILD_VERSION: Optional[str] = None
    WEB_ORIGIN: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    @model_validator(mode="after")
    def _validate_s3(self) -> "Settings":
        if self.ANNOTATE_STORAGE_DRIVER.lower() == "s3":
            missing = [
                name
                for name, value in {
                    "ANNOTATE_S3_BUCKET": self.ANNOTATE_S3_BUCKET,
                    "ANNOTATE_S3_ACCESS_KEY": self.ANNOTATE_S3_ACCESS_KEY,
                    "ANNOTATE_S3_SECRET_KEY": self.ANNOTATE_S3_SECRET_KEY,
                }.items()
                if not value
            ]
            if missing:
                raise ValueError(f"Missing required S3 settings: {', '.join(missing)}")
        if self.ANNOTATE_TEXT_HEIGHT_FACTOR <= 0 or self.ANNOTATE_TEXT_LINE_HEIGHT <= 0:
            raise ValueError("Text height factor and line height must be positive")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
