"""Startup handshake with the Seafile server."""

import logging

import httpx

from .client import SeafileClient
from .exceptions import SeafileError, StartupError
from .models import SeafileSession

logger = logging.getLogger(__name__)


async def bootstrap(client: SeafileClient) -> SeafileSession:
    """Resolve the session the proxy serves with.

    Pings the server with the configured token, looks up the default library
    and fetches its upload link. Any failure is fatal: the proxy must not
    accept traffic without a session.

    Args:
        client: Client configured with the base URL and token

    Returns:
        SeafileSession: Immutable session for the process lifetime

    Raises:
        StartupError: If any step of the handshake fails
    """
    try:
        await client.ping()
        repo_id = await client.get_default_repo()
        upload_link = await client.get_upload_link(repo_id)
    except (SeafileError, httpx.HTTPError) as e:
        raise StartupError(f"Cannot establish Seafile session with {client.base_url}: {e}") from e

    logger.info(
        "Seafile session established",
        extra={"seafile_url": client.base_url, "repo_id": repo_id},
    )

    return SeafileSession(
        base_url=client.base_url,
        token=client.token,
        repo_id=repo_id,
        upload_link=upload_link,
    )
