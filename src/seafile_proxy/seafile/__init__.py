"""Seafile web API client."""

from seafile_proxy.seafile.client import SeafileClient, login
from seafile_proxy.seafile.models import SeafileSession
from seafile_proxy.seafile.session import bootstrap

__all__ = ["SeafileClient", "SeafileSession", "bootstrap", "login"]
