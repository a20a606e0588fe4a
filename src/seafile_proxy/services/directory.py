"""Directory existence check against the default library."""

from dataclasses import dataclass, field
from enum import Enum

from seafile_proxy.seafile.client import SeafileClient
from seafile_proxy.seafile.exceptions import PathNotFoundError
from seafile_proxy.seafile.models import SeafileSession


class DirectoryStatus(str, Enum):
    """Outcome of a directory lookup that did not fail."""

    EXISTS = "exists"
    ABSENT = "absent"


@dataclass(frozen=True)
class DirectoryState:
    status: DirectoryStatus
    files: list[str] = field(default_factory=list)

    @property
    def exists(self) -> bool:
        return self.status is DirectoryStatus.EXISTS


async def check_directory(
    client: SeafileClient, session: SeafileSession, directory: str
) -> DirectoryState:
    """Check whether ``directory`` exists and list the files it holds.

    A missing directory is a normal outcome (``ABSENT``). Every other
    failure propagates to the caller.
    """
    try:
        files = await client.list_files(session.repo_id, directory)
    except PathNotFoundError:
        return DirectoryState(status=DirectoryStatus.ABSENT)

    return DirectoryState(status=DirectoryStatus.EXISTS, files=files)
