"""Tests for the download relay service."""

import httpx
import pytest

from seafile_proxy.seafile.exceptions import RemoteError
from seafile_proxy.services.download_relay import (
    DOWNLOAD_CHUNK_SIZE,
    FORWARDED_REQUEST_HEADERS,
    open_download,
    response_headers,
    select_headers,
    stream_body,
)

MIB = 1024 * 1024


def test_select_headers_is_case_insensitive():
    """Test header selection from case-insensitive headers."""
    headers = httpx.Headers({"accept-language": "de", "x-api-key": "secret", "cookie": "a=b", "pragma": ""})

    assert select_headers(headers, FORWARDED_REQUEST_HEADERS) == {"Accept-Language": "de"}


def test_response_headers_allow_list():
    """Test that only cache headers and CORS reach the client."""
    upstream = httpx.Response(
        200,
        headers={
            "Cache-Control": "max-age=3600",
            "Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT",
            "Set-Cookie": "sfsession=abc",
            "Content-Disposition": "attachment",
        },
    )

    assert response_headers(upstream) == {
        "Access-Control-Allow-Origin": "*",
        "Cache-Control": "max-age=3600",
        "Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT",
    }


@pytest.mark.asyncio
async def test_open_download_forwards_allowed_headers(fake_seafile, seafile_client, session):
    """Test that only allow-listed request headers go upstream."""
    fake_seafile.files["/foo/bar.txt"] = b"hello"
    incoming = httpx.Headers({
        "If-Modified-Since": "Wed, 21 Oct 2015 07:28:00 GMT",
        "Accept": "text/plain",
        "Accept-Language": "en",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "Authorization": "Bearer user-token",
        "Cookie": "sessionid=1",
        "X-Forwarded-For": "10.0.0.1",
    })

    upstream = await open_download(seafile_client, session, "/foo/bar.txt", incoming)
    await upstream.aclose()

    sent = fake_seafile.download_requests[0].headers
    assert sent["If-Modified-Since"] == "Wed, 21 Oct 2015 07:28:00 GMT"
    assert sent["Accept"] == "text/plain"
    assert sent["Accept-Language"] == "en"
    assert sent["Cache-Control"] == "no-cache"
    assert sent["Pragma"] == "no-cache"
    assert "Authorization" not in sent
    assert "Cookie" not in sent
    assert "X-Forwarded-For" not in sent


@pytest.mark.asyncio
async def test_open_download_unresolved_path(fake_seafile, seafile_client, session):
    """Test that resolution errors are raised before any fetch."""
    with pytest.raises(RemoteError):
        await open_download(seafile_client, session, "/missing.txt", httpx.Headers())

    assert fake_seafile.download_requests == []


@pytest.mark.asyncio
async def test_stream_body_chunks(fake_seafile, seafile_client, session):
    """Test that a 10 MiB body arrives complete in chunks of at most 1 MiB."""
    body = bytes(range(256)) * (10 * MIB // 256)
    fake_seafile.files["/foo/bar.txt"] = body

    upstream = await open_download(seafile_client, session, "/foo/bar.txt", httpx.Headers())
    chunks = [chunk async for chunk in stream_body(upstream)]

    assert DOWNLOAD_CHUNK_SIZE == MIB
    assert len(chunks) == 10
    assert all(len(chunk) <= MIB for chunk in chunks)
    assert b"".join(chunks) == body
    assert upstream.is_closed


@pytest.mark.asyncio
async def test_stream_body_truncates_on_upstream_error():
    """Test that a broken upstream ends the stream without raising."""
    class BrokenStream(httpx.AsyncByteStream):
        async def __aiter__(self):
            yield b"a" * 10
            raise httpx.ReadError("connection reset")

        async def aclose(self):
            pass

    upstream = httpx.Response(
        200, stream=BrokenStream(), request=httpx.Request("GET", "https://seafile.test/files/x")
    )

    chunks = [chunk async for chunk in stream_body(upstream, chunk_size=4)]

    assert b"".join(chunks) == b"a" * 8
    assert upstream.is_closed
