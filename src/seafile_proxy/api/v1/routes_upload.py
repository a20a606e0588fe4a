"""Upload form and upload relay routes."""

import logging
import time
from pathlib import Path
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates
from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from seafile_proxy.api.dependencies import get_client, get_notifier, get_session
from seafile_proxy.api.errors import error_response
from seafile_proxy.core.config import settings
from seafile_proxy.core.logging import upload_folder_context
from seafile_proxy.seafile.client import SeafileClient
from seafile_proxy.seafile.exceptions import SeafileError
from seafile_proxy.seafile.models import SeafileSession
from seafile_proxy.services.notifier import CallbackNotifier
from seafile_proxy.services.upload_relay import relay_upload

router = APIRouter(tags=["upload"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "ui" / "templates"))
logger = logging.getLogger(__name__)


def form_value(form: FormData, name: str, default: str) -> str:
    """Value of ``name`` as submitted, or ``default`` when missing or empty."""
    value = form.get(name)
    if isinstance(value, str) and value:
        return value
    return default


@router.get("/upload", response_class=HTMLResponse)
async def upload_page(request: Request):
    """Serve the upload form."""
    return templates.TemplateResponse(request, "upload.html", {"message": None})


@router.post("/upload", response_class=HTMLResponse)
async def upload_files(
    request: Request,
    client: SeafileClient = Depends(get_client),
    session: SeafileSession = Depends(get_session),
    notifier: Optional[CallbackNotifier] = Depends(get_notifier),
) -> Response:
    """Relay the submitted files into a Seafile folder.

    Form fields: ``file`` (repeatable), ``folder``, ``callback``.
    """
    started_at = time.monotonic()
    content_length = request.headers.get("content-length")
    logger.info("Received upload", extra={"content_length": content_length})

    if content_length and content_length.isdigit() and int(content_length) > settings.max_form_size_bytes:
        return error_response(
            f"Request body of {content_length} bytes exceeds {settings.MAX_FORM_SIZE_MB}MB"
        )

    try:
        form = await request.form()
    except StarletteHTTPException as e:
        logger.warning("Cannot parse upload form", extra={"error": e.detail})
        return error_response(e.detail)

    try:
        uploads = [
            item for item in form.getlist("file")
            if isinstance(item, UploadFile) and item.filename
        ]
        total_size = sum(item.size or 0 for item in uploads)
        if total_size > settings.max_form_size_bytes:
            return error_response(
                f"Uploaded files of {total_size} bytes exceed {settings.MAX_FORM_SIZE_MB}MB"
            )

        folder = form_value(form, "folder", settings.DEFAULT_FOLDER)
        callback_url = form_value(form, "callback", settings.DEFAULT_CALLBACK_URL)
        upload_folder_context.set(folder)

        try:
            summary = await relay_upload(
                client,
                session,
                folder,
                [(item.filename, item.file) for item in uploads],
                callback_url=callback_url,
                notifier=notifier,
                started_at=started_at,
            )
        except (SeafileError, httpx.HTTPError, OSError) as e:
            logger.error(
                "Upload relay failed",
                extra={"folder": folder, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            return error_response(e)
    finally:
        await form.close()

    return templates.TemplateResponse(
        request,
        "upload.html",
        {"message": summary.message, "summary": summary},
    )
