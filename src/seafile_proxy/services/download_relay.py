"""Relay file downloads from Seafile to the client."""

import logging
from typing import AsyncIterator, Iterable, Mapping

import httpx

from seafile_proxy.seafile.client import SeafileClient
from seafile_proxy.seafile.models import SeafileSession

logger = logging.getLogger(__name__)

# Conditional and content-negotiation headers a client may pass upstream
FORWARDED_REQUEST_HEADERS = (
    "If-Modified-Since",
    "Accept",
    "Accept-Encoding",
    "Accept-Language",
    "Cache-Control",
    "Pragma",
)

# Upstream headers returned to the client on a 200
FORWARDED_RESPONSE_HEADERS = ("Cache-Control", "Last-Modified")

DOWNLOAD_CHUNK_SIZE = 1024 * 1024  # 1MB


def select_headers(headers: Mapping[str, str], allowed: Iterable[str]) -> dict[str, str]:
    """Copy the non-empty ``allowed`` headers out of ``headers``.

    ``headers`` must be case-insensitive (Starlette and httpx headers are).
    """
    selected = {}
    for name in allowed:
        value = headers.get(name)
        if value:
            selected[name] = value
    return selected


def response_headers(upstream: httpx.Response) -> dict[str, str]:
    """Headers for a successful relayed download."""
    headers = {"Access-Control-Allow-Origin": "*"}
    headers.update(select_headers(upstream.headers, FORWARDED_RESPONSE_HEADERS))
    return headers


async def open_download(
    client: SeafileClient,
    session: SeafileSession,
    path: str,
    request_headers: Mapping[str, str],
) -> httpx.Response:
    """Resolve ``path`` and start streaming it from Seafile.

    Raises:
        SeafileError: Seafile could not resolve the path
        httpx.HTTPError: Transport failure
    """
    link = await client.get_download_link(session.repo_id, path)
    forwarded = select_headers(request_headers, FORWARDED_REQUEST_HEADERS)

    logger.info("Downloading", extra={"path": path, "forwarded_headers": sorted(forwarded)})
    return await client.open_download(link, forwarded)


async def stream_body(
    upstream: httpx.Response, chunk_size: int = DOWNLOAD_CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """Yield the upstream body in ``chunk_size`` pieces and close it afterwards.

    An upstream failure mid-transfer ends the stream early; the client sees
    a truncated body. Cancellation (client went away) closes the upstream
    response as well.
    """
    try:
        async for chunk in upstream.aiter_bytes(chunk_size):
            yield chunk
    except httpx.HTTPError as e:
        logger.warning(
            "Download interrupted",
            extra={"url_path": upstream.request.url.path, "error": str(e)},
        )
    finally:
        await upstream.aclose()
