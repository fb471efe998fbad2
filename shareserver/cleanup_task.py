"""Background task that reclaims abandoned partial uploads."""

import asyncio
import time
from typing import Optional

from common.logging_config import get_logger
from filestore import share_storage
from filestore.upload_locks import UploadLockRegistry, upload_locks
from shareserver import config

logger = get_logger(__name__)


class PartialUploadCleaner:
    """
    Periodically deletes partial upload artifacts that have not grown
    for longer than the configured maximum age.
    """

    def __init__(
        self,
        interval_seconds: Optional[int] = None,
        max_age_seconds: Optional[int] = None,
        locks: Optional[UploadLockRegistry] = None,
    ):
        """
        Initialize cleaner task.

        Args:
            interval_seconds: Time between sweeps (default CLEANUP_INTERVAL)
            max_age_seconds: Idle time after which a partial is abandoned
                             (default PARTIAL_UPLOAD_MAX_AGE)
            locks: Upload lock registry; partials with a held lock are skipped
        """
        self.interval_seconds = interval_seconds or config.CLEANUP_INTERVAL
        self.max_age_seconds = max_age_seconds or config.PARTIAL_UPLOAD_MAX_AGE
        self.locks = locks if locks is not None else upload_locks
        self._running = False
        self._task = None

    async def start(self) -> None:
        """Start the background cleanup task."""
        if self._running:
            logger.warning("Partial upload cleanup task already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"Started partial upload cleanup task (interval: {self.interval_seconds}s, "
            f"max age: {self.max_age_seconds}s)"
        )

    async def stop(self) -> None:
        """Stop the background cleanup task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Stopped partial upload cleanup task")

    async def _run(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                self.sweep()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in partial upload cleanup task: {e}", exc_info=True)

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Delete every stale partial artifact once.

        Args:
            now: Reference timestamp (default time.time())

        Returns:
            Number of partial artifacts deleted
        """
        if now is None:
            now = time.time()

        deleted = 0
        for share_id, file_id, mtime in share_storage.list_partial_uploads():
            if now - mtime <= self.max_age_seconds:
                continue

            if self.locks.is_held(share_id, file_id):
                logger.debug(f"Skipping partial upload {file_id} in share {share_id}: upload in progress")
                continue

            try:
                if share_storage.delete_partial(share_id, file_id):
                    deleted += 1
                    logger.info(f"Deleted abandoned partial upload {file_id} in share {share_id}")
            except OSError as e:
                logger.warning(f"Failed to delete partial upload {file_id} in share {share_id}: {e}")

        if deleted:
            logger.info(f"Partial upload sweep complete: {deleted} deleted")
        return deleted
