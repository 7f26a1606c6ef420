from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SMARTFILE_", env_file=".env", extra="ignore")

    app_name: str = "smart-file-api"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 8080

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./smart-file-api.db",
        validation_alias="DATABASE_URL",
    )
    db_echo: bool = Field(default=False, validation_alias="DB_ECHO")

    # Redis / response cache
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    # redis, memory or none
    cache_backend: str = Field(default="redis", validation_alias="CACHE_BACKEND")
    cache_ttl: int = Field(default=300, validation_alias="CACHE_TTL")  # 5 minutes
    cache_op_timeout: float = Field(default=0.25, validation_alias="CACHE_OP_TIMEOUT")
    cache_invalidation_timeout: float = Field(
        default=2.0, validation_alias="CACHE_INVALIDATION_TIMEOUT"
    )

    # Authentication
    jwt_secret: str = Field(
        default="change-this-secret-in-production",  # nosec B105 - dev default
        validation_alias="JWT_SECRET",
    )
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = Field(default=24, validation_alias="JWT_EXPIRE_HOURS")

    # Uploads
    upload_dir: str = Field(default="uploads", validation_alias="UPLOAD_DIR")
    max_upload_size: int = Field(default=10 * 1024 * 1024, validation_alias="MAX_UPLOAD_SIZE")

    # Background processing
    processing_delay: float = Field(default=3.0, validation_alias="PROCESSING_DELAY")

    # Observability
    log_level: str = "INFO"
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")
    log_file: str | None = Field(default="app.log", validation_alias="LOG_FILE")
    log_tail_bytes: int = 10240
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")


settings = Settings()
