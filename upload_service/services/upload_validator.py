"""Validation and placement of uploaded files."""

import math
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict

from upload_service.core.exceptions import ConfigurationError
from upload_service.core.units import convert_from_bytes, convert_to_bytes
from upload_service.schemas.upload_schema import (
    FileOutcome,
    UploadDescriptor,
    UploadErrorCode,
    UploadResult,
)

logger = structlog.get_logger()

DEFAULT_MAX_SIZE = 51200
DEFAULT_SUFFIX = ".upload"
DEFAULT_PERMITTED_TYPES: frozenset[str] = frozenset(
    {
        "image/jpeg",
        "image/pjpeg",
        "image/gif",
        "image/png",
        "image/webp",
    }
)
UNTRUSTED_EXTENSIONS: frozenset[str] = frozenset(
    {"bin", "cgi", "exe", "js", "pl", "php", "py", "sh"}
)


class FileCheck(BaseModel):
    """Verdict of check_file for one descriptor."""

    model_config = ConfigDict(frozen=True)

    accepted: bool
    effective_name: str | None = None
    renamed: bool = False
    message: str | None = None


def split_name(name: str) -> tuple[str, str]:
    """Split a filename into stem and extension (without the dot)."""
    stem, extension = os.path.splitext(name)
    return stem, extension.lstrip(".")


class UploadValidator:
    """Checks uploaded files and moves the accepted ones into a directory."""

    def __init__(
        self,
        destination: str | Path,
        host_max_filesize: str | int = "2M",
        permitted_types: Iterable[str] | None = None,
    ) -> None:
        path = Path(destination)
        if not path.is_dir() or not os.access(path, os.W_OK):
            raise ConfigurationError(f"{destination} must be a valid, writable folder.")

        self._destination = path.resolve()
        self._host_max_size = convert_to_bytes(host_max_filesize)
        self._max_size = DEFAULT_MAX_SIZE
        if permitted_types is None:
            permitted_types = DEFAULT_PERMITTED_TYPES
        self._permitted_types = frozenset(mime.lower() for mime in permitted_types)
        self._type_checking = True
        self._suffix = DEFAULT_SUFFIX

    @property
    def destination(self) -> str:
        """Destination directory, always ending with a separator."""
        return os.path.join(str(self._destination), "")

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def host_max_size(self) -> int:
        return self._host_max_size

    @property
    def type_checking_enabled(self) -> bool:
        return self._type_checking

    @property
    def suffix(self) -> str:
        return self._suffix

    @property
    def permitted_types(self) -> frozenset[str]:
        return self._permitted_types

    # --- Configuration ---

    def set_max_size(self, num_bytes: int | float | str) -> None:
        """Raise the per-file limit, never beyond the host ceiling.

        Non-numeric and non-positive values are ignored. Fractions of a
        byte are dropped.
        """
        try:
            value = num_bytes if isinstance(num_bytes, int) else float(num_bytes)
        except OverflowError:
            value = math.inf
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric max size", value=num_bytes)
            return

        if value > self._host_max_size:
            raise ConfigurationError(
                "Maximum size cannot exceed server limit for individual files: "
                + convert_from_bytes(self._host_max_size)
            )

        size = int(value) if value > 0 else 0
        if size > 0:
            self._max_size = size
        else:
            logger.warning("Ignoring non-positive max size", value=num_bytes)

    def allow_all_types(self, suffix: str | None = None) -> None:
        """Turn off MIME checking; suspicious names get ``suffix`` instead."""
        self._type_checking = False

        if suffix is not None:
            if suffix == "" or suffix.startswith("."):
                self._suffix = suffix
            else:
                self._suffix = f".{suffix}"

    # --- Batch entry points ---

    def upload(
        self,
        descriptors: Iterable[UploadDescriptor],
        rename_duplicates: bool = True,
    ) -> list[str]:
        """Validate and place every descriptor, returning outcome messages."""
        return self.process(descriptors, rename_duplicates).messages

    def process(
        self,
        descriptors: Iterable[UploadDescriptor],
        rename_duplicates: bool = True,
    ) -> UploadResult:
        """Like upload(), but also reports the terminal state of each file."""
        messages: list[str] = []
        outcomes: list[FileOutcome] = []

        for descriptor in descriptors:
            outcome = self._handle(descriptor, rename_duplicates)
            messages.extend(outcome.messages)
            outcomes.append(outcome)

        return UploadResult(messages=messages, files=outcomes)

    def _handle(
        self, descriptor: UploadDescriptor, rename_duplicates: bool
    ) -> FileOutcome:
        check = self.check_file(descriptor, rename_duplicates)
        if not check.accepted:
            logger.info(
                "File rejected",
                original_name=descriptor.original_name,
                reason=check.message,
            )
            return FileOutcome(
                original_name=descriptor.original_name,
                state="rejected",
                messages=[check.message] if check.message else [],
            )
        return self.move_file(descriptor, check, rename_duplicates)

    # --- Checks ---

    def check_file(
        self, descriptor: UploadDescriptor, rename_duplicates: bool = True
    ) -> FileCheck:
        """Run transport, size, type and name checks for one file."""
        if descriptor.transport_error != UploadErrorCode.OK:
            return FileCheck(accepted=False, message=self.error_message(descriptor))

        rejection = self.check_size(descriptor)
        if rejection is None and self._type_checking:
            rejection = self.check_type(descriptor)
        if rejection is not None:
            return FileCheck(accepted=False, message=rejection)

        try:
            new_name = self.check_name(descriptor.original_name, rename_duplicates)
        except OSError as exc:
            logger.warning(
                "Upload folder listing failed",
                original_name=descriptor.original_name,
                error=str(exc),
            )
            return FileCheck(
                accepted=False, message=f"Could not upload {descriptor.original_name}"
            )
        return FileCheck(
            accepted=True,
            effective_name=new_name or descriptor.original_name,
            renamed=new_name is not None,
        )

    def error_message(self, descriptor: UploadDescriptor) -> str:
        """Explain a transport error reported by the HTTP layer."""
        name = descriptor.original_name
        match descriptor.transport_error:
            case UploadErrorCode.INI_SIZE | UploadErrorCode.FORM_SIZE:
                limit = convert_from_bytes(self._max_size)
                return f"{name} is too big: ( max: {limit} )"
            case UploadErrorCode.PARTIAL:
                return f"{name} was only partially uploaded."
            case UploadErrorCode.NO_FILE:
                return "No file submitted"
            case _:
                return f"Sorry, there was a problem uploading {name}"

    def check_size(self, descriptor: UploadDescriptor) -> str | None:
        """Return a rejection message for empty or oversized files."""
        name = descriptor.original_name
        if descriptor.size_bytes == 0:
            return f"{name} is empty."
        if descriptor.size_bytes > self._max_size:
            return (
                f"{name} exceeds the maximum size of file "
                f"({convert_from_bytes(self._max_size)} )"
            )
        return None

    def check_type(self, descriptor: UploadDescriptor) -> str | None:
        """Return a rejection message when the declared MIME type is not permitted."""
        if descriptor.declared_mime_type.lower() in self._permitted_types:
            return None
        return f"{descriptor.original_name} is not permitted type of file."

    def check_name(
        self, original_name: str, rename_duplicates: bool = True
    ) -> str | None:
        """Compute the name to store the file under.

        Spaces become underscores, suspicious names get the suffix and
        names already taken in the destination get a ``_N`` counter.
        Returns None when the original name can be used as is.
        """
        new_name: str | None = None
        nospaces = original_name.replace(" ", "_")
        if nospaces != original_name:
            new_name = nospaces

        stem, extension = split_name(nospaces)
        if self.is_suspicious(extension):
            new_name = nospaces + self._suffix

        if rename_duplicates:
            existing = set(os.listdir(self._destination))
            if (new_name or original_name) in existing:
                new_name = self._next_free_name(stem, extension, existing)

        return new_name

    def is_suspicious(self, extension: str) -> bool:
        """Whether a name with this extension gets the suspicious suffix."""
        if self._type_checking or not self._suffix:
            return False
        return not extension or extension.lower() in UNTRUSTED_EXTENSIONS

    def _next_free_name(self, stem: str, extension: str, existing: set[str]) -> str:
        index = 1
        while True:
            candidate = f"{stem}_{index}"
            if extension:
                candidate += f".{extension}"
            if self.is_suspicious(extension):
                candidate += self._suffix
            if candidate not in existing:
                return candidate
            index += 1

    # --- Placement ---

    def move_file(
        self,
        descriptor: UploadDescriptor,
        check: FileCheck,
        rename_duplicates: bool = True,
    ) -> FileOutcome:
        """Move an accepted file into the destination directory.

        With duplicate renaming on, the target is created exclusively and a
        name claimed after the directory listing moves on to the next free
        ``_N`` name. With it off, an existing file is overwritten.
        """
        name = descriptor.original_name
        effective_name = check.effective_name or name
        renamed = check.renamed
        tried = {effective_name}

        try:
            while True:
                try:
                    self._place(descriptor, effective_name, exclusive=rename_duplicates)
                    break
                except FileExistsError:
                    stem, extension = split_name(name.replace(" ", "_"))
                    taken = set(os.listdir(self._destination)) | tried
                    effective_name = self._next_free_name(stem, extension, taken)
                    tried.add(effective_name)
                    renamed = True
        except (OSError, ValueError) as exc:
            logger.warning(
                "File placement failed",
                original_name=name,
                effective_name=effective_name,
                error=str(exc),
            )
            return FileOutcome(
                original_name=name,
                state="placement_failed",
                effective_name=effective_name,
                renamed=renamed,
                messages=[f"Could not upload {name}"],
            )

        message = f"{name} was uploaded successfully"
        if renamed:
            message += f", and was renamed {effective_name}"
        message += "."

        logger.info(
            "File uploaded",
            original_name=name,
            effective_name=effective_name,
            size_bytes=descriptor.size_bytes,
        )
        return FileOutcome(
            original_name=name,
            state="placed",
            effective_name=effective_name,
            renamed=renamed,
            messages=[message],
        )

    def _place(
        self, descriptor: UploadDescriptor, effective_name: str, exclusive: bool
    ) -> None:
        """Copy the temporary file to its final name, then drop the temp copy."""
        if descriptor.temp_path is None:
            raise FileNotFoundError(f"No stored data for {descriptor.original_name}")

        target = self._destination / effective_name
        if effective_name in {"", ".", ".."} or target.parent != self._destination:
            raise PermissionError(f"{effective_name!r} is outside the upload folder")

        with descriptor.temp_path.open("rb") as source:
            sink = target.open("xb" if exclusive else "wb")
            try:
                with sink:
                    shutil.copyfileobj(source, sink)
            except OSError:
                target.unlink(missing_ok=True)
                raise
        descriptor.temp_path.unlink(missing_ok=True)
