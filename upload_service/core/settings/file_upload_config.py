"""File upload configuration."""

from pathlib import Path

from pydantic import BaseModel


class FileUploadConfig(BaseModel, frozen=True):
    """File upload settings."""

    upload_dir: Path
    max_file_size: int
    upload_max_filesize: str
    allowed_mime_types: str
    allow_all_types: bool
    suspicious_suffix: str | None
    rename_duplicates: bool

    @property
    def allowed_mime_types_list(self) -> list[str]:
        """Get permitted MIME types as a list."""
        return [
            mime.strip().lower()
            for mime in self.allowed_mime_types.split(",")
            if mime.strip()
        ]
