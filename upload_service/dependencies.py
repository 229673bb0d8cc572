"""Global dependencies for the application."""

import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Annotated

from fastapi import Depends

from upload_service.core.config import settings
from upload_service.core.settings import FileUploadConfig
from upload_service.services.upload_validator import UploadValidator


def get_file_upload_config() -> FileUploadConfig:
    """Get the file upload configuration for the current request."""
    return settings.file_upload


FileUploadConfigDep = Annotated[FileUploadConfig, Depends(get_file_upload_config)]


def build_upload_validator(config: FileUploadConfig) -> UploadValidator:
    """Create a freshly configured validator.

    Raises ConfigurationError when the upload folder is unusable or the
    configured limit exceeds the host ceiling.
    """
    validator = UploadValidator(
        config.upload_dir,
        host_max_filesize=config.upload_max_filesize,
        permitted_types=config.allowed_mime_types_list,
    )
    validator.set_max_size(config.max_file_size)
    if config.allow_all_types:
        validator.allow_all_types(config.suspicious_suffix)
    return validator


def get_upload_validator(config: FileUploadConfigDep) -> UploadValidator:
    """Get an UploadValidator built from the request's upload config."""
    return build_upload_validator(config)


async def get_spool_dir() -> AsyncGenerator[Path, None]:
    """Provide a per-request temporary directory for incoming file parts."""
    with tempfile.TemporaryDirectory(prefix="upload-spool-") as spool_dir:
        yield Path(spool_dir)
