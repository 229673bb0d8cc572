"""File upload API router."""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from upload_service.core.rate_limit import limiter, upload_rate_limit
from upload_service.dependencies import get_spool_dir, get_upload_validator
from upload_service.schemas.response_schema import ApiResponse, success_response
from upload_service.schemas.upload_schema import UploadResult
from upload_service.services.descriptor_factory import (
    build_descriptors,
    parse_size_hint,
)
from upload_service.services.upload_validator import UploadValidator

router = APIRouter(prefix="/api/v1/uploads", tags=["uploads"])

UploadValidatorDep = Annotated[UploadValidator, Depends(get_upload_validator)]
SpoolDirDep = Annotated[Path, Depends(get_spool_dir)]


@router.post("", response_model=ApiResponse[UploadResult])
@limiter.limit(upload_rate_limit)
async def upload_files(
    request: Request,
    validator: UploadValidatorDep,
    spool_dir: SpoolDirDep,
    filename: Annotated[list[UploadFile | str] | None, File()] = None,
    max_file_size: Annotated[str | None, Form(alias="MAX_FILE_SIZE")] = None,
    rename_duplicates: bool = Query(default=True),
) -> dict:
    """Validate the submitted files and place the accepted ones."""
    descriptors = await build_descriptors(
        filename,
        spool_dir,
        host_max_size=validator.host_max_size,
        size_hint=parse_size_hint(max_file_size),
    )
    result = await run_in_threadpool(validator.process, descriptors, rename_duplicates)
    return success_response(
        result, message=f"{result.placed_count} of {len(result.files)} file(s) uploaded"
    )
