"""Share service: creation, upload lock transitions and removal."""

from typing import Optional

from common.logging_config import get_logger
from filestore import share_storage
from shareserver.exceptions import InvalidShareIdError, InvalidShareStateError, ShareNotFoundError
from shareserver.repositories.reverse_share_repository import ReverseShareRepository
from shareserver.repositories.share_repository import Share, ShareRepository
from shareserver.services.file_service import FileService
from shareserver.utils import is_valid_share_id

logger = get_logger(__name__)


class ShareService:
    def __init__(self, file_service: Optional[FileService] = None):
        self.share_repo = ShareRepository()
        self.reverse_share_repo = ReverseShareRepository()
        self.file_service = file_service if file_service is not None else FileService()

    def create(
        self,
        share_id: str,
        reverse_share_id: Optional[str] = None,
        max_share_size: Optional[int] = None,
    ) -> Share:
        if not is_valid_share_id(share_id):
            raise InvalidShareIdError(
                "Share id must be 3 to 50 characters of letters, digits, '-' or '_'"
            )

        if self.share_repo.exists(share_id):
            raise InvalidShareIdError(f"Share id {share_id} is already in use")

        if reverse_share_id is not None and self.reverse_share_repo.get_by_id(reverse_share_id) is None:
            raise ShareNotFoundError(f"Reverse share {reverse_share_id} not found")

        return self.share_repo.create_share(
            share_id=share_id,
            reverse_share_id=reverse_share_id,
            max_share_size=max_share_size,
        )

    def get(self, share_id: str) -> Share:
        share = self.share_repo.get_by_id(share_id)
        if share is None:
            raise ShareNotFoundError(f"Share {share_id} not found")
        return share

    def complete(self, share_id: str) -> Share:
        """
        Lock a share against further uploads.

        Raises:
            ShareNotFoundError: Share does not exist
            InvalidShareStateError: Share is already completed or has no files
            StorageIOError: The share archive could not be written; the share stays open
        """
        share = self.get(share_id)

        if share.upload_locked:
            raise InvalidShareStateError("Share already completed")

        if not share.files:
            raise InvalidShareStateError("You need at least one file in your share to complete it")

        self.file_service.build_archive(share)
        self.share_repo.set_upload_locked(share_id, True)
        share.upload_locked = True
        logger.info(f"Share {share_id} completed with {len(share.files)} files")
        return share

    def revert_complete(self, share_id: str) -> Share:
        """Reopen a completed share for uploads."""
        share = self.get(share_id)

        if share.upload_locked:
            self.share_repo.set_upload_locked(share_id, False)
            share_storage.delete_archive(share_id)
            share.upload_locked = False
            logger.info(f"Share {share_id} reopened for uploads")

        return share

    async def remove(self, share_id: str) -> None:
        """
        Delete a share record and purge its directory.

        File records cascade with the share record, which is removed
        before the artifacts.
        """
        if not self.share_repo.delete_share(share_id):
            raise ShareNotFoundError(f"Share {share_id} not found")

        await self.file_service.delete_all_files(share_id)
        logger.info(f"Share {share_id} removed")
