"""
Configuration and settings for the Remap backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.signing import InvalidConfiguration

S3_SERVICE_NAME = "s3"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(
        default="INFO", validation_alias=AliasChoices("REMAP_LOG_LEVEL", "log_level")
    )

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Object storage
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    aws_region: Optional[str] = Field(default=None)
    aws_s3_bucket_name: Optional[str] = Field(default=None)
    aws_s3_access_point_alias: Optional[str] = Field(default=None)

    # Hosted auth service used to resolve bearer tokens
    auth_url: Optional[str] = Field(default=None)
    auth_api_key: Optional[str] = Field(default=None)

    # Transactional email
    resend_api_key: Optional[str] = Field(default=None)
    contact_from_address: str = Field(default="Remap Design <onboarding@resend.dev>")
    contact_notify_from_address: str = Field(
        default="Remap Contact Form <onboarding@resend.dev>"
    )
    contact_notify_address: str = Field(default="designremap@gmail.com")
    contact_whatsapp_number: str = Field(default="+91 8087247972")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "REMAP_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )


@dataclass(frozen=True)
class StorageConfig:
    """Credentials and endpoint for signed bucket listings."""

    access_key_id: str
    secret_access_key: str
    region: str
    bucket_name: str
    access_point_alias: Optional[str] = None
    service_name: str = S3_SERVICE_NAME

    def __repr__(self) -> str:
        return (
            f"StorageConfig(region={self.region!r}, bucket_name={self.bucket_name!r}, "
            f"access_point_alias={self.access_point_alias!r})"
        )

    @property
    def bucket_host(self) -> str:
        return f"{self.bucket_name}.s3.{self.region}.amazonaws.com"

    @property
    def access_point_host(self) -> Optional[str]:
        if not self.access_point_alias:
            return None
        return f"{self.access_point_alias}.s3-accesspoint.{self.region}.amazonaws.com"

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageConfig":
        """
        Raises:
            InvalidConfiguration: naming every missing environment variable.
        """
        required = {
            "AWS_ACCESS_KEY_ID": settings.aws_access_key_id,
            "AWS_SECRET_ACCESS_KEY": settings.aws_secret_access_key,
            "AWS_REGION": settings.aws_region,
            "AWS_S3_BUCKET_NAME": settings.aws_s3_bucket_name,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise InvalidConfiguration(
                f"Missing storage configuration: {', '.join(missing)}"
            )
        return cls(
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            region=settings.aws_region,
            bucket_name=settings.aws_s3_bucket_name,
            access_point_alias=settings.aws_s3_access_point_alias or None,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
