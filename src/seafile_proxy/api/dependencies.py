"""Request dependencies resolving the objects built at startup."""

from typing import Optional

from fastapi import Request

from seafile_proxy.seafile.client import SeafileClient
from seafile_proxy.seafile.models import SeafileSession
from seafile_proxy.services.notifier import CallbackNotifier


def get_client(request: Request) -> SeafileClient:
    return request.app.state.seafile_client


def get_session(request: Request) -> SeafileSession:
    return request.app.state.seafile_session


def get_notifier(request: Request) -> Optional[CallbackNotifier]:
    return getattr(request.app.state, "notifier", None)
