"""Download relay route."""

import logging

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from seafile_proxy.api.dependencies import get_client, get_session
from seafile_proxy.api.errors import error_response
from seafile_proxy.core.config import settings
from seafile_proxy.seafile.client import SeafileClient
from seafile_proxy.seafile.exceptions import SeafileError
from seafile_proxy.seafile.models import SeafileSession
from seafile_proxy.services.download_relay import open_download, response_headers, stream_body

router = APIRouter(tags=["download"])
logger = logging.getLogger(__name__)

# Statuses that must not carry a body
_BODYLESS_STATUSES = {204, 304}


@router.get("/get/{path:path}")
async def download_file(
    path: str,
    request: Request,
    client: SeafileClient = Depends(get_client),
    session: SeafileSession = Depends(get_session),
) -> Response:
    """Stream ``/<path>`` of the default library to the client."""
    try:
        upstream = await open_download(client, session, "/" + path, request.headers)
    except (SeafileError, httpx.HTTPError) as e:
        logger.error(
            "Cannot resolve download",
            extra={"url_path": "/" + path, "error": str(e), "error_type": type(e).__name__},
        )
        return error_response(e)

    if upstream.status_code != 200:
        await upstream.aclose()
        if upstream.status_code in _BODYLESS_STATUSES:
            return Response(status_code=upstream.status_code)
        return PlainTextResponse(
            f"{upstream.status_code} {upstream.reason_phrase}",
            status_code=upstream.status_code,
        )

    return StreamingResponse(
        stream_body(upstream, settings.DOWNLOAD_CHUNK_SIZE),
        headers=response_headers(upstream),
    )
