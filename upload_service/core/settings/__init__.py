"""Domain-specific configuration models."""

from upload_service.core.settings.app_config import AppConfig
from upload_service.core.settings.file_upload_config import FileUploadConfig
from upload_service.core.settings.server_config import ServerConfig

__all__ = [
    "AppConfig",
    "FileUploadConfig",
    "ServerConfig",
]
