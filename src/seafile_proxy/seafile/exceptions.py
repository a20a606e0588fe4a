"""Exceptions raised by the Seafile client and the relays built on it."""

from typing import Optional

# Seafile answers a directory listing for a missing path with this message.
PATH_DOES_NOT_EXIST_MSG = "Path does not exist"


class SeafileError(Exception):
    """Base exception for Seafile operations."""
    pass


class RemoteError(SeafileError):
    """Seafile answered with an ``{"error_msg": ...}`` body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PathNotFoundError(RemoteError):
    """Requested path does not exist in the repository."""
    pass


class DirectoryCreateError(RemoteError):
    """Seafile refused to create a directory."""
    pass


class UnexpectedResponseError(SeafileError):
    """Response body matches neither the success nor the error shape."""
    pass


class AuthenticationError(SeafileError):
    """Token or login credentials were rejected."""
    pass


class RepoNotFoundError(SeafileError):
    """The account has no default library."""
    pass


class InvalidRepoError(SeafileError):
    """Default library identifier is malformed."""
    pass


class UploadError(SeafileError):
    """Upload endpoint did not return a file hash."""
    pass


class StartupError(SeafileError):
    """Session could not be established before serving."""
    pass


def error_from_message(message: str, status_code: Optional[int] = None) -> RemoteError:
    """Map a Seafile ``error_msg`` onto a structured error kind.

    This is the only place that looks at the wording of Seafile errors.
    """
    if message == PATH_DOES_NOT_EXIST_MSG:
        return PathNotFoundError(message, status_code)
    return RemoteError(message, status_code)
