"""Spool multipart file parts to disk and describe them for the validator."""

import re
import tempfile
from pathlib import Path

import structlog
from fastapi import UploadFile

from upload_service.schemas.upload_schema import UploadDescriptor, UploadErrorCode

logger = structlog.get_logger()

CHUNK_SIZE = 1024 * 1024

_PATH_SEPARATORS = re.compile(r"[\\/]")


def client_filename(raw: str | None) -> str:
    """Keep only the last path component of a client-supplied filename."""
    return _PATH_SEPARATORS.split(raw or "")[-1].strip()


def parse_size_hint(raw: str | None) -> int | None:
    """Parse the advisory MAX_FILE_SIZE form field, ignoring junk."""
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value > 0 else None


def _discard(path: Path | None) -> None:
    if path is not None:
        path.unlink(missing_ok=True)


async def spool_upload(
    upload: UploadFile,
    spool_dir: Path,
    host_max_size: int,
    size_hint: int | None = None,
) -> UploadDescriptor:
    """Copy one uploaded part into ``spool_dir`` and describe the result.

    Parts larger than the host ceiling or the client size hint are not kept,
    mirroring how the transport layer drops oversized uploads.
    """
    name = client_filename(upload.filename)
    mime_type = upload.content_type or ""

    if not name:
        return UploadDescriptor(
            original_name="",
            declared_mime_type=mime_type,
            transport_error=UploadErrorCode.NO_FILE,
        )

    temp_path: Path | None = None
    size = 0
    try:
        with tempfile.NamedTemporaryFile(
            dir=spool_dir, prefix="upload-", delete=False
        ) as sink:
            temp_path = Path(sink.name)
            while chunk := await upload.read(CHUNK_SIZE):
                size += len(chunk)
                if size > host_max_size:
                    break
                sink.write(chunk)
    except OSError as exc:
        _discard(temp_path)
        logger.warning("Could not spool upload", original_name=name, error=str(exc))
        return UploadDescriptor(
            original_name=name,
            declared_mime_type=mime_type,
            transport_error=UploadErrorCode.CANT_WRITE,
        )

    error = UploadErrorCode.OK
    if size > host_max_size:
        error = UploadErrorCode.INI_SIZE
    elif size_hint is not None and size > size_hint:
        error = UploadErrorCode.FORM_SIZE

    if error != UploadErrorCode.OK:
        _discard(temp_path)
        logger.info("Upload dropped by transport", original_name=name, code=error.name)
        return UploadDescriptor(
            original_name=name,
            declared_mime_type=mime_type,
            transport_error=error,
        )

    return UploadDescriptor(
        original_name=name,
        declared_mime_type=mime_type,
        temp_path=temp_path,
        size_bytes=size,
    )


async def build_descriptors(
    uploads: list[UploadFile | str] | None,
    spool_dir: Path,
    host_max_size: int,
    size_hint: int | None = None,
) -> list[UploadDescriptor]:
    """Describe every submitted part, or report that nothing was submitted.

    Browsers send a file input left empty as a part with a blank filename,
    which arrives as a plain string rather than an UploadFile.
    """
    if not uploads:
        return [
            UploadDescriptor(original_name="", transport_error=UploadErrorCode.NO_FILE)
        ]

    descriptors = []
    for upload in uploads:
        if isinstance(upload, str):
            descriptors.append(
                UploadDescriptor(
                    original_name="", transport_error=UploadErrorCode.NO_FILE
                )
            )
        else:
            descriptors.append(
                await spool_upload(upload, spool_dir, host_max_size, size_hint)
            )
    return descriptors
