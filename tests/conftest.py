"""Pytest configuration and shared fixtures."""

import re
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from seafile_proxy.main import create_app
from seafile_proxy.seafile.client import SeafileClient
from seafile_proxy.seafile.models import SeafileSession
from seafile_proxy.services.notifier import CallbackNotifier

BASE_URL = "https://seafile.test"
TOKEN = "24fd3c026886e3121b2ca630805ed425c272cb96"
REPO_ID = "691b3e24-d05e-43cd-a9f2-6f32bd6b800e"
UPLOAD_LINK = "https://seafile.test:8082/upload-api/ef881b22"
FILE_HASH = "adc83b19e793491b1c6ea0fd8b46cd9f32e592fc"
DOWNLOAD_PREFIX = "/files/adee6094"


def _form_field(body: bytes, name: str) -> str | None:
    match = re.search(rb'name="' + name.encode() + rb'"\r\n\r\n(.*?)\r\n', body, re.S)
    return match.group(1).decode() if match else None


class FakeSeafile:
    """In-memory stand-in for the Seafile web API and file server."""

    def __init__(self):
        self.directories: dict[str, list[str]] = {}
        self.files: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.uploads: list[tuple[str, str]] = []
        self.upload_reply = FILE_HASH
        self.download_status = 200
        self.listing_error: str | None = None
        self.download_headers: dict[str, str] = {
            "Cache-Control": "max-age=3600",
            "Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT",
            "X-Seafile-Node": "node-1",
            "Set-Cookie": "sfsession=abc",
        }

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @property
    def download_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(DOWNLOAD_PREFIX)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        repo = f"/api2/repos/{REPO_ID}"

        if path == "/api2/auth/ping/":
            return httpx.Response(200, json="pong")
        if path == "/api2/default-repo/":
            return httpx.Response(200, json={"repo_id": REPO_ID, "exists": True})
        if path == f"{repo}/upload-link/":
            return httpx.Response(200, json=UPLOAD_LINK)

        if path == f"{repo}/dir/":
            directory = request.url.params["p"]
            if request.method == "POST":
                self.directories.setdefault(directory, [])
                return httpx.Response(201, json="success")
            if self.listing_error:
                return httpx.Response(403, json={"error_msg": self.listing_error})
            if directory not in self.directories:
                return httpx.Response(404, json={"error_msg": "Path does not exist"})
            return httpx.Response(200, json=[
                {"id": "0" * 40, "type": "file", "name": name, "size": 0, "mtime": 1400000000}
                for name in self.directories[directory]
            ])

        if path == "/upload-api/ef881b22":
            folder = _form_field(request.content, "parent_dir")
            file_name = _form_field(request.content, "filename")
            if self.upload_reply == FILE_HASH:
                self.uploads.append((folder, file_name))
                self.directories.setdefault(folder, []).append(file_name)
            return httpx.Response(200, text=self.upload_reply)

        if path == f"{repo}/file/":
            file_path = request.url.params["p"]
            if file_path not in self.files:
                return httpx.Response(404, json={"error_msg": "File not found"})
            return httpx.Response(200, json=f"https://seafile.test:8082{DOWNLOAD_PREFIX}{file_path}")

        if path.startswith(DOWNLOAD_PREFIX):
            content = self.files.get(path[len(DOWNLOAD_PREFIX):], b"")
            if self.download_status != 200:
                content = b""
            return httpx.Response(self.download_status, content=content, headers=self.download_headers)

        return httpx.Response(404, json={"error_msg": "Unknown endpoint"})


@pytest.fixture
def fake_seafile():
    """Fresh fake Seafile server."""
    return FakeSeafile()


@pytest.fixture
def seafile_client(fake_seafile):
    """Seafile client wired to the fake server."""
    return SeafileClient(BASE_URL, TOKEN, transport=httpx.MockTransport(fake_seafile.handler))


@pytest.fixture
def session():
    """Session as established at startup."""
    return SeafileSession(base_url=BASE_URL, token=TOKEN, repo_id=REPO_ID, upload_link=UPLOAD_LINK)


@pytest.fixture
def mock_notifier():
    """Notifier that records dispatches instead of sending them."""
    return MagicMock(spec=CallbackNotifier)


@pytest.fixture
def app(seafile_client, session, mock_notifier):
    """Application with the Seafile session injected."""
    return create_app(client=seafile_client, session=session, notifier=mock_notifier)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)
