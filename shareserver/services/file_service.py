"""File service for chunked ingestion, retrieval and deletion."""

import base64
import binascii
import os
import sqlite3
from typing import Iterator, Optional, Tuple

from common.logging_config import get_logger
from common.types import ChunkUploadResult, FileMetadata
from filestore import share_storage
from filestore.upload_locks import UploadLockRegistry, upload_locks
from shareserver.exceptions import (
    InvalidChunkError,
    MaxShareSizeExceededError,
    SharedFileNotFoundError,
    ShareLockedError,
    ShareNotFoundError,
    StorageIOError,
    UnexpectedChunkIndexError,
)
from shareserver.repositories.file_repository import FileRepository, SharedFile
from shareserver.repositories.share_repository import Share, ShareRepository
from shareserver.services.config_service import ConfigService
from shareserver.services.quota import check_share_size
from shareserver.utils import content_type_for, generate_uuid, is_valid_uuid

logger = get_logger(__name__)


def expected_chunk_index(bytes_received: int, chunk_size: int) -> int:
    """Index of the next chunk given the bytes already on disk."""
    return -(-bytes_received // chunk_size)


def decode_chunk(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidChunkError(f"Chunk payload is not valid base64: {e}") from e


class FileService:
    def __init__(self, locks: Optional[UploadLockRegistry] = None):
        self.share_repo = ShareRepository()
        self.file_repo = FileRepository()
        self.config = ConfigService()
        self.locks = locks if locks is not None else upload_locks

    async def create(
        self,
        share_id: str,
        data: str,
        chunk_index: int,
        total_chunks: int,
        file_name: str,
        file_id: Optional[str] = None,
    ) -> ChunkUploadResult:
        """
        Accept one chunk of a file upload.

        The next expected index is derived from the partial artifact's size
        on disk, so a client that lost a response can resume from the index
        reported in UnexpectedChunkIndexError. The file becomes visible only
        when its last chunk has been written and registered.

        Args:
            share_id: Share receiving the file
            data: Base64 encoded chunk bytes
            chunk_index: 0-based position of this chunk
            total_chunks: Number of chunks in the file (1 for an empty file)
            file_name: Original file name
            file_id: UUID naming the file; generated when omitted on chunk 0

        Returns:
            ChunkUploadResult with the file id and upload progress

        Raises:
            InvalidChunkError: Malformed index, file id, name or payload
            ShareNotFoundError: Share does not exist
            ShareLockedError: Share has been completed
            UnexpectedChunkIndexError: Chunk index does not match bytes on disk
            MaxShareSizeExceededError: Chunk would exceed a share size limit
            StorageIOError: Artifact write, rename or registration failed
        """
        if total_chunks < 1 or not 0 <= chunk_index < total_chunks:
            raise InvalidChunkError(
                f"Chunk index {chunk_index} is out of range for {total_chunks} chunks"
            )

        if not file_name:
            raise InvalidChunkError("File name is required")

        if file_id is None:
            if chunk_index != 0:
                raise InvalidChunkError("A file id is required for every chunk after the first")
            file_id = generate_uuid()
        elif not is_valid_uuid(file_id):
            raise InvalidChunkError(f"Invalid file id: {file_id}")

        async with self.locks.hold(share_id, file_id):
            return self._write_chunk(share_id, file_id, file_name, data, chunk_index, total_chunks)

    def _write_chunk(
        self,
        share_id: str,
        file_id: str,
        file_name: str,
        data: str,
        chunk_index: int,
        total_chunks: int,
    ) -> ChunkUploadResult:
        share = self.share_repo.get_by_id(share_id)
        if share is None:
            raise ShareNotFoundError(f"Share {share_id} not found")

        if share.upload_locked:
            raise ShareLockedError("Share is already completed")

        bytes_received = share_storage.get_partial_size(share_id, file_id)
        chunk_size = self.config.get("share.chunkSize")
        expected = expected_chunk_index(bytes_received, chunk_size)

        if chunk_index != expected:
            logger.warning(
                f"Unexpected chunk {chunk_index} for file {file_id} [share_id={share_id}, "
                f"expected={expected}, bytes_received={bytes_received}]"
            )
            raise UnexpectedChunkIndexError("Unexpected chunk received", expected_chunk_index=expected)

        if bytes_received == 0 and self.file_repo.get_by_id(file_id) is not None:
            raise InvalidChunkError(f"File {file_id} has already been uploaded")

        chunk = decode_chunk(data)
        is_last_chunk = chunk_index == total_chunks - 1

        if len(chunk) > chunk_size or (not is_last_chunk and len(chunk) != chunk_size):
            raise InvalidChunkError(
                f"Chunk {chunk_index} has {len(chunk)} bytes, expected {chunk_size}"
                + (" or fewer" if is_last_chunk else "")
            )

        try:
            check_share_size(share, bytes_received, len(chunk), self.config.get("share.maxSize"))
        except MaxShareSizeExceededError:
            logger.warning(f"Rejected chunk {chunk_index} for file {file_id}: share {share_id} is full")
            raise

        try:
            bytes_on_disk = share_storage.append_chunk(share_id, file_id, chunk)
        except OSError as e:
            logger.error(f"Failed to append chunk {chunk_index} for file {file_id}: {e}", exc_info=True)
            raise StorageIOError(f"Failed to store chunk {chunk_index}") from e

        logger.debug(
            f"Stored chunk {chunk_index + 1}/{total_chunks} for file {file_id} "
            f"[share_id={share_id}, bytes_received={bytes_on_disk}]"
        )

        if not is_last_chunk:
            return ChunkUploadResult(
                file_id=file_id,
                name=file_name,
                bytes_received=bytes_on_disk,
                completed=False,
            )

        shared_file = self._finalize(share_id, file_id, file_name, bytes_received)
        return ChunkUploadResult(
            file_id=file_id,
            name=file_name,
            bytes_received=shared_file.size,
            completed=True,
        )

    def _finalize(self, share_id: str, file_id: str, file_name: str, size_before_chunk: int) -> SharedFile:
        try:
            size = share_storage.finalize_partial(share_id, file_id)
        except OSError as e:
            logger.error(f"Failed to finalize file {file_id}: {e}", exc_info=True)
            share_storage.truncate_partial(share_id, file_id, size_before_chunk)
            raise StorageIOError(f"Failed to finalize file {file_id}") from e

        try:
            shared_file = self.file_repo.create_file(
                file_id=file_id,
                name=file_name,
                size=size,
                share_id=share_id,
            )
        except sqlite3.Error as e:
            logger.error(f"Failed to register file {file_id}, rolling back last chunk: {e}")
            try:
                share_storage.restore_partial(share_id, file_id, size_before_chunk)
            except OSError as restore_error:
                logger.error(f"Failed to restore partial artifact for {file_id}: {restore_error}")
            raise StorageIOError(f"Failed to register file {file_id}") from e

        logger.info(f"File {file_id} uploaded to share {share_id} ({size} bytes)")
        return shared_file

    def _get_file(self, share_id: str, file_id: str) -> SharedFile:
        shared_file = self.file_repo.get_by_id(file_id)
        if shared_file is None or shared_file.share_id != share_id:
            raise SharedFileNotFoundError("File not found")
        return shared_file

    async def get(self, share_id: str, file_id: str) -> Tuple[FileMetadata, Iterator[bytes]]:
        """
        Open a completed file for download.

        Returns:
            Tuple of (metadata with inferred MIME type, byte stream)

        Raises:
            SharedFileNotFoundError: No completed file with this id in the share
            StorageIOError: The final artifact cannot be opened
        """
        shared_file = self._get_file(share_id, file_id)

        try:
            handle = share_storage.open_file(share_id, file_id)
        except OSError as e:
            logger.error(f"Artifact for file {file_id} in share {share_id} cannot be opened: {e}")
            raise StorageIOError(f"File {file_id} is not readable") from e

        metadata = FileMetadata(
            file_id=shared_file.file_id,
            name=shared_file.name,
            size=shared_file.size,
            share_id=shared_file.share_id,
            mime_type=content_type_for(shared_file.name),
        )
        return metadata, share_storage.stream_file(handle)

    def build_archive(self, share: Share) -> int:
        """
        Write the share archive from the share's completed files.

        Returns:
            Archive size in bytes

        Raises:
            StorageIOError: An artifact is missing or the archive cannot be written
        """
        try:
            size = share_storage.write_archive(
                share.share_id,
                [(f.file_id, f.name) for f in share.files],
            )
        except OSError as e:
            logger.error(f"Failed to build archive for share {share.share_id}: {e}", exc_info=True)
            raise StorageIOError(f"Failed to build archive for share {share.share_id}") from e

        logger.info(f"Archive built for share {share.share_id} ({len(share.files)} files, {size} bytes)")
        return size

    async def get_archive(self, share_id: str) -> Tuple[int, Iterator[bytes]]:
        """
        Open the archive of a completed share for download.

        Returns:
            Tuple of (archive size, byte stream)

        Raises:
            ShareNotFoundError: Share does not exist
            SharedFileNotFoundError: Share has no archive
        """
        if not self.share_repo.exists(share_id):
            raise ShareNotFoundError(f"Share {share_id} not found")

        try:
            handle = share_storage.open_archive(share_id)
        except FileNotFoundError:
            raise SharedFileNotFoundError("Archive not found, complete the share first")
        except OSError as e:
            logger.error(f"Archive of share {share_id} cannot be opened: {e}")
            raise StorageIOError(f"Archive of share {share_id} is not readable") from e

        size = os.fstat(handle.fileno()).st_size
        return size, share_storage.stream_file(handle)

    async def remove(self, share_id: str, file_id: str) -> None:
        """
        Delete a completed file.

        The metadata record goes first so a crash never leaves a listed file
        without bytes; a leftover artifact is removed with the share directory.
        """
        self._get_file(share_id, file_id)

        self.file_repo.delete_file(file_id)

        try:
            if not share_storage.delete_file(share_id, file_id):
                logger.warning(f"Artifact for file {file_id} was already absent")
        except OSError as e:
            logger.error(f"Failed to delete artifact for file {file_id} in share {share_id}: {e}")

        share = self.share_repo.get_by_id(share_id)
        if share is not None and share.upload_locked:
            try:
                if share.files:
                    self.build_archive(share)
                else:
                    share_storage.delete_archive(share_id)
            except StorageIOError:
                share_storage.delete_archive(share_id)
                logger.warning(f"Share {share_id} has no archive until it is completed again")

        logger.info(f"File {file_id} removed from share {share_id}")

    async def delete_all_files(self, share_id: str) -> None:
        """Remove every artifact of a share, final and partial."""
        try:
            share_storage.delete_share_directory(share_id)
        except OSError as e:
            logger.error(f"Failed to purge share directory {share_id}: {e}", exc_info=True)
            raise StorageIOError(f"Failed to purge files of share {share_id}") from e

        logger.info(f"Purged all files of share {share_id}")
