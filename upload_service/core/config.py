"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from upload_service.core.settings import AppConfig, FileUploadConfig, ServerConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.file_upload.upload_dir).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = Field(
        default="upload-service",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )

    # File Upload
    upload_dir: Path = Field(
        default=Path("./uploaded"),
        description="Destination directory for accepted files",
    )
    max_file_size: int = Field(
        default=100 * 1024,
        ge=1,
        description="Maximum accepted file size in bytes",
    )
    upload_max_filesize: str = Field(
        default="2M",
        pattern=r"^\s*\d+\s*[kKmMgG]?\s*$",
        description="Host per-file upload ceiling (optional k/m/g suffix)",
    )
    allowed_mime_types: str = Field(
        default="image/jpeg,image/pjpeg,image/gif,image/png,image/webp",
        description="Comma-separated list of permitted MIME types",
    )
    allow_all_types: bool = Field(
        default=True,
        description="Disable MIME type checking and suffix suspicious files",
    )
    suspicious_suffix: str | None = Field(
        default=None,
        description="Suffix for suspicious files (unset keeps '.upload')",
    )
    rename_duplicates: bool = Field(
        default=True,
        description="Rename files whose name already exists in upload_dir",
    )
    upload_rate_limit: str = Field(
        default="30/minute",
        description="Upload endpoints rate limit",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port",
    )

    # --- Domain properties ---

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            version=self.app_version,
            env=self.app_env,
            debug=self.debug,
        )

    @cached_property
    def file_upload(self) -> FileUploadConfig:
        """File upload configuration."""
        return FileUploadConfig(
            upload_dir=self.upload_dir,
            max_file_size=self.max_file_size,
            upload_max_filesize=self.upload_max_filesize,
            allowed_mime_types=self.allowed_mime_types,
            allow_all_types=self.allow_all_types,
            suspicious_suffix=self.suspicious_suffix,
            rename_duplicates=self.rename_duplicates,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
        )


# Global settings instance
settings = Settings()
