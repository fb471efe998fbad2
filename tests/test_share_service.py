"""Tests for share creation, completion and removal."""

import base64
import zipfile

import pytest

from filestore import share_storage
from filestore.upload_locks import UploadLockRegistry
from shareserver.exceptions import InvalidShareIdError, InvalidShareStateError, ShareNotFoundError, StorageIOError
from shareserver.repositories.file_repository import FileRepository
from shareserver.repositories.reverse_share_repository import ReverseShareRepository
from shareserver.repositories.share_repository import ShareRepository
from shareserver.services.file_service import FileService
from shareserver.services.share_service import ShareService


@pytest.fixture
def file_service():
    return FileService(locks=UploadLockRegistry())


@pytest.fixture
def share_service(file_service):
    return ShareService(file_service=file_service)


async def add_file(file_service: FileService, share_id: str, content: bytes = b"hi") -> str:
    result = await file_service.create(
        share_id, base64.b64encode(content).decode("ascii"), 0, 1, "notes.txt"
    )
    return result.file_id


class TestCreateShare:
    def test_create_share(self, test_db, share_service):
        share = share_service.create("holiday-photos", max_share_size=500)

        assert share.share_id == "holiday-photos"
        assert share.upload_locked is False
        assert ShareRepository.get_by_id("holiday-photos").max_share_size == 500

    @pytest.mark.parametrize("share_id", ["ab", "has space", "../escape", "x" * 51, "abc\n"])
    def test_invalid_share_id(self, test_db, share_service, share_id):
        with pytest.raises(InvalidShareIdError):
            share_service.create(share_id)

    def test_duplicate_share_id(self, test_db, share_service):
        share_service.create("duplicate")

        with pytest.raises(InvalidShareIdError):
            share_service.create("duplicate")

    def test_unknown_reverse_share(self, test_db, share_service):
        with pytest.raises(ShareNotFoundError):
            share_service.create("from-reverse", reverse_share_id="missing")

    def test_share_linked_to_reverse_share(self, test_db, share_service):
        ReverseShareRepository.create_reverse_share("rs-1", max_share_size=1000)

        share_service.create("from-reverse", reverse_share_id="rs-1")

        stored = ShareRepository.get_by_id("from-reverse")
        assert stored.reverse_share.reverse_share_id == "rs-1"
        assert stored.reverse_share.max_share_size == 1000


class TestCompleteShare:
    @pytest.mark.asyncio
    async def test_complete_locks_share(self, share, share_service, file_service):
        await add_file(file_service, "test-share")

        completed = share_service.complete("test-share")

        assert completed.upload_locked is True
        assert ShareRepository.get_by_id("test-share").upload_locked is True

    def test_complete_empty_share(self, share, share_service):
        with pytest.raises(InvalidShareStateError):
            share_service.complete("test-share")

    @pytest.mark.asyncio
    async def test_complete_twice(self, share, share_service, file_service):
        await add_file(file_service, "test-share")
        share_service.complete("test-share")

        with pytest.raises(InvalidShareStateError):
            share_service.complete("test-share")

    def test_complete_unknown_share(self, test_db, share_service):
        with pytest.raises(ShareNotFoundError):
            share_service.complete("missing")

    @pytest.mark.asyncio
    async def test_revert_complete_is_idempotent(self, share, share_service, file_service):
        await add_file(file_service, "test-share")
        share_service.complete("test-share")

        assert share_service.revert_complete("test-share").upload_locked is False
        assert share_service.revert_complete("test-share").upload_locked is False
        assert ShareRepository.get_by_id("test-share").upload_locked is False

    def test_revert_unknown_share(self, test_db, share_service):
        with pytest.raises(ShareNotFoundError):
            share_service.revert_complete("missing")


class TestShareArchive:
    @pytest.mark.asyncio
    async def test_complete_writes_archive(self, share, share_service, file_service):
        await add_file(file_service, "test-share", b"one")
        await add_file(file_service, "test-share", b"two")

        share_service.complete("test-share")

        with zipfile.ZipFile(share_storage.get_archive_path("test-share")) as archive:
            assert sorted(archive.namelist()) == ["notes (1).txt", "notes.txt"]
            assert sorted(archive.read(n) for n in archive.namelist()) == [b"one", b"two"]

    @pytest.mark.asyncio
    async def test_archive_failure_keeps_share_open(self, share, share_service, file_service, monkeypatch):
        await add_file(file_service, "test-share")

        def broken_write(share_id, files):
            raise OSError("disk full")

        monkeypatch.setattr(share_storage, "write_archive", broken_write)

        with pytest.raises(StorageIOError):
            share_service.complete("test-share")

        assert ShareRepository.get_by_id("test-share").upload_locked is False

    @pytest.mark.asyncio
    async def test_revert_deletes_archive(self, share, share_service, file_service):
        await add_file(file_service, "test-share")
        share_service.complete("test-share")

        share_service.revert_complete("test-share")

        assert not share_storage.get_archive_path("test-share").exists()

    @pytest.mark.asyncio
    async def test_removing_file_rebuilds_archive(self, share, share_service, file_service):
        kept = await add_file(file_service, "test-share", b"keep")
        dropped = await add_file(file_service, "test-share", b"drop")
        share_service.complete("test-share")

        await file_service.remove("test-share", dropped)

        with zipfile.ZipFile(share_storage.get_archive_path("test-share")) as archive:
            assert archive.namelist() == ["notes.txt"]
            assert archive.read("notes.txt") == b"keep"
        assert FileRepository.get_by_id(kept) is not None

    @pytest.mark.asyncio
    async def test_removing_last_file_deletes_archive(self, share, share_service, file_service):
        file_id = await add_file(file_service, "test-share")
        share_service.complete("test-share")

        await file_service.remove("test-share", file_id)

        assert not share_storage.get_archive_path("test-share").exists()

    @pytest.mark.asyncio
    async def test_remove_share_deletes_archive(self, share, share_service, file_service):
        await add_file(file_service, "test-share")
        share_service.complete("test-share")
        archive_path = share_storage.get_archive_path("test-share")
        assert archive_path.exists()

        await share_service.remove("test-share")

        assert not archive_path.exists()


class TestRemoveShare:
    @pytest.mark.asyncio
    async def test_remove_purges_records_and_directory(self, share, share_service, file_service, share_dir):
        file_id = await add_file(file_service, "test-share")

        await share_service.remove("test-share")

        assert ShareRepository.get_by_id("test-share") is None
        assert FileRepository.get_by_id(file_id) is None
        assert not share_storage.get_share_directory("test-share").exists()

    @pytest.mark.asyncio
    async def test_remove_unknown_share(self, test_db, share_dir, share_service):
        with pytest.raises(ShareNotFoundError):
            await share_service.remove("missing")
