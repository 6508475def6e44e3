"""Application configuration using Pydantic Settings (ENV ONLY)."""
from functools import lru_cache
from typing import Optional
from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings (loaded from environment variables or .env)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Dijipot Face Matching"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_V1_PREFIX: str = "/api/v1"

    # Database
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "dijipot"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    # Full URL wins over the DB_* parts when set (e.g. sqlite for local runs)
    DATABASE_URL: Optional[str] = None

    @model_validator(mode="after")
    def build_database_url(self) -> "Settings":
        if not self.DATABASE_URL:
            self.DATABASE_URL = (
                f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            )
        return self

    # Redis / Celery
    REDIS_HOST: str = "127.0.0.1"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    CELERY_BROKER_DB: int = 1
    CELERY_RESULT_DB: int = 2

    @computed_field
    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @computed_field
    @property
    def CELERY_BROKER_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.CELERY_BROKER_DB}"

    @computed_field
    @property
    def CELERY_RESULT_BACKEND(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.CELERY_RESULT_DB}"

    # Face++
    FACEPP_API_KEY: str = ""
    FACEPP_API_SECRET: str = ""
    FACEPP_BASE_URL: str = "https://api-us.faceplusplus.com/facepp/v3"
    FACEPP_TIMEOUT: float = 30.0
    FACEPP_MAX_RETRIES: int = Field(1, ge=0)
    FACEPP_RETRY_DELAY: float = 1.1

    # Matching
    MATCH_THRESHOLD: float = 60.0
    MATCH_CANDIDATE_CAP: int = Field(100, ge=0)  # 0 = compare every candidate

    # Rate limiting of the Face++ compare endpoint
    COMPARE_MIN_INTERVAL: float = Field(1.1, ge=0.0)
    RATE_LIMIT_BACKEND: str = "local"  # "local" | "redis"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
