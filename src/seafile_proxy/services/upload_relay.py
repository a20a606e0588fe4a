"""Relay uploaded form files into a Seafile folder."""

import logging
import time
from dataclasses import dataclass
from typing import BinaryIO, Optional, Sequence

from seafile_proxy.seafile.client import SeafileClient
from seafile_proxy.seafile.models import SeafileSession
from seafile_proxy.services.directory import check_directory
from seafile_proxy.services.notifier import CallbackNotifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadSummary:
    """Result of one upload request."""

    uploaded: int
    skipped: int
    elapsed: float  # seconds

    @property
    def message(self) -> str:
        return f"Upload successful. Time taken: {self.elapsed:.3f}s. Uploaded {self.uploaded} files"


async def relay_upload(
    client: SeafileClient,
    session: SeafileSession,
    folder: str,
    files: Sequence[tuple[str, BinaryIO]],
    callback_url: str = "",
    notifier: Optional[CallbackNotifier] = None,
    started_at: Optional[float] = None,
) -> UploadSummary:
    """Upload ``files`` into ``folder``, creating the folder when missing.

    Files whose name already exists in the folder are skipped. Uploads run
    one after another and the first failure aborts the rest of the batch;
    files stored before the failure stay stored.

    Args:
        client: Seafile API client
        session: Session holding the library id and upload link
        folder: Target folder, e.g. ``/docs/``
        files: ``(file_name, stream)`` pairs; streams must stay open
        callback_url: URL notified after each stored file, empty for none
        notifier: Background dispatcher for callbacks
        started_at: ``time.monotonic()`` value the request started at

    Returns:
        UploadSummary: Counts and elapsed time

    Raises:
        SeafileError: Listing, directory creation or an upload failed
        httpx.HTTPError: Transport failure talking to Seafile
    """
    if started_at is None:
        started_at = time.monotonic()

    state = await check_directory(client, session, folder)
    if not state.exists:
        await client.create_directory(session.repo_id, folder)

    existing = set(state.files)
    uploaded = 0
    skipped = 0

    for file_name, src in files:
        if file_name in existing:
            logger.info("Skipping", extra={"path": folder + file_name})
            skipped += 1
            continue

        file_hash = await client.upload_file(session.upload_link, folder, file_name, src)
        uploaded += 1

        if callback_url and notifier is not None:
            notifier.dispatch(callback_url, folder, file_name, file_hash)

    summary = UploadSummary(
        uploaded=uploaded,
        skipped=skipped,
        elapsed=time.monotonic() - started_at,
    )
    logger.info(
        "Upload completed",
        extra={"folder": folder, "uploaded": uploaded, "skipped": skipped, "elapsed": summary.elapsed},
    )
    return summary
