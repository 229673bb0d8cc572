"""Upload descriptor and outcome schemas."""

from enum import IntEnum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UploadErrorCode(IntEnum):
    """Transport-level upload failure codes."""

    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8


class UploadDescriptor(BaseModel):
    """Metadata for one submitted file, as handed over by the HTTP layer."""

    model_config = ConfigDict(frozen=True)

    original_name: str
    declared_mime_type: str = ""
    temp_path: Path | None = None
    transport_error: UploadErrorCode = UploadErrorCode.OK
    size_bytes: int = Field(default=0, ge=0)


FileState = Literal["rejected", "placed", "placement_failed"]


class FileOutcome(BaseModel):
    """Terminal state of a single file within a batch."""

    model_config = ConfigDict(frozen=True)

    original_name: str
    state: FileState
    effective_name: str | None = None
    renamed: bool = False
    messages: list[str] = Field(default_factory=list)


class UploadResult(BaseModel):
    """Ordered messages and per-file outcomes for a whole batch."""

    model_config = ConfigDict(frozen=True)

    messages: list[str] = Field(default_factory=list)
    files: list[FileOutcome] = Field(default_factory=list)

    @property
    def placed_count(self) -> int:
        """Number of files moved into the destination directory."""
        return sum(1 for outcome in self.files if outcome.state == "placed")
