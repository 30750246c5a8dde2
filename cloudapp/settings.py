"""Application settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration with sensible defaults."""

    log_level: str = Field(default="info", alias="LOG_LEVEL")
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=5000, alias="PORT")
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")

    # Set on deployed Lambdas by the stack template.
    function_name: str | None = Field(default=None, alias="CLOUDAPP_FUNCTION")
    application: str | None = Field(default=None, alias="CLOUDAPP_APPLICATION")
    lambda_runtime_api: str | None = Field(default=None, alias="AWS_LAMBDA_RUNTIME_API")

    stack_name: str | None = Field(default=None, alias="CLOUDAPP_STACK_NAME")
    out_dir: Path = Field(default=Path("cdk.out"), alias="CLOUDAPP_OUT_DIR")
    artifact_bucket: str | None = Field(default=None, alias="CLOUDAPP_ARTIFACT_BUCKET")
    aws_region: str | None = Field(default=None, alias="AWS_REGION")
    dynamodb_endpoint_url: str | None = Field(default=None, alias="DYNAMODB_ENDPOINT_URL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
