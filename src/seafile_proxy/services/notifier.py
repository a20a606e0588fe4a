"""Fire-and-forget callback notifications for uploaded files."""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class CallbackNotifier:
    """Dispatch upload callbacks in the background.

    Callbacks are never awaited by the request that triggers them. At most
    ``max_concurrency`` run at once and at most ``max_pending`` may be queued;
    beyond that new notifications are dropped. Failures are logged and
    otherwise ignored.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_concurrency: int = 4,
        max_pending: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._max_pending = max_pending
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of notifications queued or in flight."""
        return len(self._tasks)

    def dispatch(self, callback_url: str, folder: str, file_name: str, file_hash: str) -> bool:
        """Schedule ``GET callback_url?folder=..&file=..&hash=..``.

        Must be called from a running event loop.

        Returns:
            False if the notification was dropped because the queue is full
        """
        if len(self._tasks) >= self._max_pending:
            logger.warning(
                "Callback queue full, dropping notification",
                extra={"callback_url": callback_url, "folder": folder, "file": file_name},
            )
            return False

        params = {"folder": folder, "file": file_name, "hash": file_hash}
        task = asyncio.create_task(self._notify(callback_url, params))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _notify(self, callback_url: str, params: dict[str, str]) -> None:
        async with self._semaphore:
            try:
                response = await self._http.get(callback_url, params=params)
                response.raise_for_status()

                logger.info(
                    "Called back",
                    extra={"callback_url": callback_url, "file": params["file"]},
                )

            except httpx.TimeoutException:
                logger.warning(
                    "Callback timeout (non-critical)",
                    extra={"callback_url": callback_url, "timeout": self._timeout},
                )

            except httpx.HTTPError as e:
                logger.warning(
                    "Callback failed (non-critical)",
                    extra={
                        "callback_url": callback_url,
                        "error": str(e),
                        "status_code": e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None,
                    },
                )

            except Exception as e:
                logger.warning(
                    "Callback unexpected error (non-critical)",
                    extra={"callback_url": callback_url, "error": str(e)},
                )

    async def drain(self) -> None:
        """Wait until every queued notification has finished."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Give pending notifications one timeout period, then cancel them."""
        try:
            await asyncio.wait_for(asyncio.shield(self.drain()), timeout=self._timeout)
        except asyncio.TimeoutError:
            still_running = list(self._tasks)
            for task in still_running:
                task.cancel()
            logger.warning(
                "Cancelled pending callbacks on shutdown",
                extra={"cancelled": len(still_running)},
            )
            await asyncio.gather(*still_running, return_exceptions=True)
        await self._http.aclose()
