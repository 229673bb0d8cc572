"""HTML upload form page."""

from pathlib import Path
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from upload_service.core.exceptions import ConfigurationError
from upload_service.core.rate_limit import limiter, upload_rate_limit
from upload_service.core.settings import FileUploadConfig
from upload_service.dependencies import (
    FileUploadConfigDep,
    build_upload_validator,
    get_spool_dir,
)
from upload_service.services.descriptor_factory import (
    build_descriptors,
    parse_size_hint,
)

logger = structlog.get_logger()

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"

templates = Jinja2Templates(directory=TEMPLATES_DIR)

router = APIRouter(tags=["pages"])

SpoolDirDep = Annotated[Path, Depends(get_spool_dir)]


def render_form(
    request: Request, config: FileUploadConfig, result: list[str]
) -> HTMLResponse:
    """Render the outcome list (if any) followed by the upload form."""
    return templates.TemplateResponse(
        request,
        "form.html",
        {"result": result, "max_size": config.max_file_size},
    )


@router.get("/", response_class=HTMLResponse)
async def upload_form(request: Request, config: FileUploadConfigDep) -> HTMLResponse:
    """Show the empty upload form."""
    return render_form(request, config, [])


@router.post("/", response_class=HTMLResponse)
@limiter.limit(upload_rate_limit)
async def submit_upload(
    request: Request,
    config: FileUploadConfigDep,
    spool_dir: SpoolDirDep,
    filename: Annotated[list[UploadFile | str] | None, File()] = None,
    max_file_size: Annotated[str | None, Form(alias="MAX_FILE_SIZE")] = None,
    upload: Annotated[str | None, Form()] = None,
) -> HTMLResponse:
    """Process a form submission and show one message per outcome."""
    if upload is None:
        return render_form(request, config, [])

    try:
        validator = build_upload_validator(config)
    except ConfigurationError as exc:
        logger.error("Upload handler misconfigured", error=exc.message)
        return render_form(request, config, [exc.message])

    descriptors = await build_descriptors(
        filename,
        spool_dir,
        host_max_size=validator.host_max_size,
        size_hint=parse_size_hint(max_file_size),
    )
    result = await run_in_threadpool(
        validator.upload, descriptors, config.rename_duplicates
    )
    return render_form(request, config, result)
