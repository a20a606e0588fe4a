"""Main application entrypoint for the Seafile proxy."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from seafile_proxy.api.middleware import HTTPErrorLoggingMiddleware
from seafile_proxy.api.v1 import routes_health
from seafile_proxy.api.v1.routes_download import router as download_router
from seafile_proxy.api.v1.routes_upload import router as upload_router
from seafile_proxy.core.config import settings
from seafile_proxy.core.logging import setup_logging
from seafile_proxy.seafile.client import SeafileClient
from seafile_proxy.seafile.exceptions import StartupError
from seafile_proxy.seafile.models import SeafileSession
from seafile_proxy.seafile.session import bootstrap
from seafile_proxy.services.notifier import CallbackNotifier

ASSETS_DIR = Path(__file__).resolve().parent / "ui" / "assets"

logger = logging.getLogger(__name__)


def check_credentials() -> None:
    """Fail fast on configuration the proxy cannot start without."""
    if not settings.SEAFILE_URL:
        raise StartupError(
            "SEAFILE_URL is blank.\n"
            "You should pass url to your seafile host in SEAFILE_URL variable.\n"
            "For example: SEAFILE_URL=https://yourhost.com"
        )
    if not settings.SEAFILE_TOKEN:
        raise StartupError(
            "SEAFILE_TOKEN is blank.\n"
            "You should pass SEAFILE_TOKEN environment variable.\n"
            "Run 'seafile-proxy login your_username your_password' to get authentication token."
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Establish the Seafile session before serving, release clients after.

    Objects already placed on ``app.state`` by ``create_app`` are used as is
    and left for their owner to close.
    """
    owned = []

    if getattr(app.state, "seafile_session", None) is None:
        check_credentials()
        client = SeafileClient(
            settings.seafile_base_url,
            settings.SEAFILE_TOKEN,
            timeout=settings.REQUEST_TIMEOUT,
        )
        try:
            session = await bootstrap(client)
        except StartupError:
            await client.aclose()
            raise
        app.state.seafile_client = client
        app.state.seafile_session = session
        owned.append(client)

    if getattr(app.state, "notifier", None) is None:
        notifier = CallbackNotifier(
            timeout=settings.CALLBACK_TIMEOUT,
            max_concurrency=settings.CALLBACK_MAX_CONCURRENCY,
            max_pending=settings.CALLBACK_MAX_PENDING,
        )
        app.state.notifier = notifier
        owned.append(notifier)

    logger.info(
        "Started",
        extra={"listen": settings.SEAFILE_PROXY_LISTEN, "repo_id": app.state.seafile_session.repo_id},
    )
    try:
        yield
    finally:
        for resource in reversed(owned):
            await resource.aclose()


def create_app(
    client: Optional[SeafileClient] = None,
    session: Optional[SeafileSession] = None,
    notifier: Optional[CallbackNotifier] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        client: Preconfigured Seafile client; built at startup when omitted
        session: Established session; resolved at startup when omitted
        notifier: Callback dispatcher; built at startup when omitted

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    setup_logging()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    if client is not None and session is not None:
        app.state.seafile_client = client
        app.state.seafile_session = session
    if notifier is not None:
        app.state.notifier = notifier

    app.add_middleware(HTTPErrorLoggingMiddleware)

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(upload_router)
    app.include_router(download_router)
    app.mount("/assets", StaticFiles(directory=ASSETS_DIR), name="assets")

    return app


# Export app instance for ASGI servers
app = create_app()
