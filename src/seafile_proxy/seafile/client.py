"""HTTP client for the Seafile web API."""

import logging
from typing import BinaryIO, Mapping, Optional, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from .exceptions import (
    AuthenticationError,
    DirectoryCreateError,
    InvalidRepoError,
    RemoteError,
    RepoNotFoundError,
    UnexpectedResponseError,
    UploadError,
    error_from_message,
)
from .models import (
    REPO_ID_SIZE,
    UPLOADED_FILE_HASH_SIZE,
    AuthToken,
    DefaultRepo,
    DirectoryEntry,
    DirectoryListing,
    ErrorBody,
    JsonString,
    decode_variant,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SeafileClient:
    """Authenticated client for one Seafile server.

    Every call is a single attempt bounded by ``timeout``. Responses are
    decoded as either the expected success shape or Seafile's
    ``{"error_msg": ...}`` shape; the latter is raised as a ``RemoteError``
    subclass.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _auth_headers(self, extra: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        headers = {"Authorization": f"Token {self.token}"}
        if extra:
            headers.update(extra)
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = self._auth_headers(kwargs.pop("headers", None))
        return await self._http.request(method, self.base_url + path, headers=headers, **kwargs)

    async def _request_json(self, method: str, path: str, adapter: TypeAdapter[T], **kwargs) -> T:
        """Issue an API call and decode its body as ``adapter``'s type.

        Raises:
            RemoteError: Seafile returned an ``error_msg`` body
            UnexpectedResponseError: non-2xx status or unrecognised body
            httpx.HTTPError: transport failure
        """
        response = await self._request(method, path, **kwargs)
        result = decode_variant(adapter, response.content)

        if isinstance(result, ErrorBody):
            raise error_from_message(result.error_msg, response.status_code)
        if result is None or not response.is_success:
            raise UnexpectedResponseError(
                f"Unknown server response ({response.status_code}): {response.text}"
            )
        return result

    async def ping(self) -> None:
        """Check that the token is accepted.

        Seafile replies ``"pong"`` to an authenticated ping.
        """
        reply = await self._request_json("GET", "/api2/auth/ping/", JsonString)
        if reply != "pong":
            raise AuthenticationError(f"Ping was replied with: {reply}")

    async def get_default_repo(self) -> str:
        """Return the identifier of the account's default library."""
        repo = await self._request_json("GET", "/api2/default-repo/", TypeAdapter(DefaultRepo))

        if not repo.exists:
            raise RepoNotFoundError("Repo doesn't exists")
        if repo.repo_id is None or len(repo.repo_id) != REPO_ID_SIZE:
            raise InvalidRepoError(f"Invalid default_repo: {repo.repo_id}")

        return repo.repo_id

    async def list_directory(self, repo_id: str, directory: str) -> list[DirectoryEntry]:
        """List entries of ``directory``.

        Raises:
            PathNotFoundError: directory does not exist
        """
        return await self._request_json(
            "GET", f"/api2/repos/{repo_id}/dir/", DirectoryListing, params={"p": directory}
        )

    async def list_files(self, repo_id: str, directory: str) -> list[str]:
        """Names of the regular files in ``directory``."""
        entries = await self.list_directory(repo_id, directory)
        return [entry.name for entry in entries if entry.type == "file"]

    async def create_directory(self, repo_id: str, directory: str) -> None:
        """Create ``directory``; Seafile answers ``"success"``."""
        logger.info("Creating directory", extra={"repo_id": repo_id, "directory": directory})

        try:
            reply = await self._request_json(
                "POST",
                f"/api2/repos/{repo_id}/dir/",
                JsonString,
                params={"p": directory},
                data={"operation": "mkdir"},
                headers={"Accept": "application/json; charset=utf-8"},
            )
        except RemoteError as e:
            raise DirectoryCreateError(
                f"Cannot create directory {directory} > {e.message}", e.status_code
            ) from e

        if reply != "success":
            raise UnexpectedResponseError(f"Cannot create directory {directory} > {reply}")

    async def get_upload_link(self, repo_id: str) -> str:
        """Fetch the URL multipart uploads for ``repo_id`` are posted to."""
        return await self._request_json("GET", f"/api2/repos/{repo_id}/upload-link/", JsonString)

    async def upload_file(
        self, upload_link: str, folder: str, filename: str, src: BinaryIO
    ) -> str:
        """Stream ``src`` into ``folder`` and return the stored file's hash.

        Upload errors reported by Seafile:
            400 Bad request, 440 Invalid filename,
            441 File already exists, 500 Internal server error
        """
        logger.info("Uploading", extra={"path": folder + filename})

        response = await self._http.post(
            upload_link,
            headers=self._auth_headers(),
            data={"filename": filename, "parent_dir": folder},
            files={"file": (filename, src)},
        )
        body = response.text

        if not response.is_success or len(body) != UPLOADED_FILE_HASH_SIZE:
            logger.warning(
                "Upload rejected",
                extra={
                    "path": folder + filename,
                    "status_code": response.status_code,
                    "response": body[:200],
                },
            )
            raise UploadError(f"Cannot upload {folder}{filename}")

        logger.info("Saved", extra={"hash": body, "path": folder + filename})
        return body

    async def get_download_link(self, repo_id: str, path: str) -> str:
        """Resolve ``path`` to a short-lived download URL."""
        return await self._request_json(
            "GET", f"/api2/repos/{repo_id}/file/", JsonString, params={"p": path}
        )

    async def open_download(self, link: str, headers: Mapping[str, str]) -> httpx.Response:
        """Start a streamed GET of a download link.

        The link is pre-signed, so no token is sent. The caller must close
        the returned response.
        """
        request = self._http.build_request("GET", link, headers=dict(headers))
        return await self._http.send(request, stream=True)

    async def aclose(self) -> None:
        await self._http.aclose()


async def login(base_url: str, username: str, password: str, timeout: float = 60.0,
                transport: Optional[httpx.AsyncBaseTransport] = None) -> str:
    """Exchange username and password for an API token."""
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as http:
        response = await http.post(
            base_url.rstrip("/") + "/api2/auth-token/",
            data={"username": username, "password": password},
        )

    try:
        result = AuthToken.model_validate_json(response.content)
    except ValidationError as e:
        raise UnexpectedResponseError(
            f"Unknown server response ({response.status_code}): {response.text}"
        ) from e
    if result.non_field_errors:
        raise AuthenticationError(result.non_field_errors[0])
    if not result.token:
        raise AuthenticationError("No token returned.")

    return result.token
