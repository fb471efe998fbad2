"""Unit tests for on-disk share artifact storage."""

import os
import zipfile

import pytest

from filestore import share_storage

FILE_ID = "3f0c6a52-1c7e-4a8e-9a57-2d3b8f1e6c11"


class TestPartialArtifacts:
    """Test appending to and sizing partial uploads."""

    def test_partial_size_is_zero_when_absent(self, share_dir):
        assert share_storage.get_partial_size("s1", FILE_ID) == 0

    def test_append_creates_share_directory_and_partial(self, share_dir):
        size = share_storage.append_chunk("s1", FILE_ID, b"hello")

        assert size == 5
        assert (share_dir / "s1" / f"{FILE_ID}.tmp-chunk").read_bytes() == b"hello"
        assert not (share_dir / "s1" / FILE_ID).exists()

    def test_append_never_overwrites(self, share_dir):
        share_storage.append_chunk("s1", FILE_ID, b"hello")
        size = share_storage.append_chunk("s1", FILE_ID, b" worl")

        assert size == 10
        assert share_storage.get_partial_path("s1", FILE_ID).read_bytes() == b"hello worl"

    def test_append_empty_chunk_creates_empty_partial(self, share_dir):
        assert share_storage.append_chunk("s1", FILE_ID, b"") == 0
        assert share_storage.get_partial_path("s1", FILE_ID).exists()

    def test_failed_append_rolls_back_to_previous_size(self, share_dir, monkeypatch):
        share_storage.append_chunk("s1", FILE_ID, b"hello")

        def failing_fsync(fd):
            raise OSError("disk full")

        monkeypatch.setattr("filestore.share_storage.os.fsync", failing_fsync)

        with pytest.raises(OSError):
            share_storage.append_chunk("s1", FILE_ID, b" worl")

        assert share_storage.get_partial_size("s1", FILE_ID) == 5

    def test_failed_first_append_leaves_no_partial(self, share_dir, monkeypatch):
        def failing_fsync(fd):
            raise OSError("disk full")

        monkeypatch.setattr("filestore.share_storage.os.fsync", failing_fsync)

        with pytest.raises(OSError):
            share_storage.append_chunk("s1", FILE_ID, b"hello")

        assert not share_storage.get_partial_path("s1", FILE_ID).exists()

    def test_truncate_partial(self, share_dir):
        share_storage.append_chunk("s1", FILE_ID, b"hello world")
        share_storage.truncate_partial("s1", FILE_ID, 5)

        assert share_storage.get_partial_path("s1", FILE_ID).read_bytes() == b"hello"


class TestFinalArtifacts:
    """Test finalize, restore, stream and delete."""

    def test_finalize_renames_partial(self, share_dir):
        share_storage.append_chunk("s1", FILE_ID, b"hello world!")

        size = share_storage.finalize_partial("s1", FILE_ID)

        assert size == 12
        assert not share_storage.get_partial_path("s1", FILE_ID).exists()
        assert share_storage.get_file_path("s1", FILE_ID).read_bytes() == b"hello world!"

    def test_finalize_without_partial_raises(self, share_dir):
        (share_dir / "s1").mkdir(parents=True)

        with pytest.raises(FileNotFoundError):
            share_storage.finalize_partial("s1", FILE_ID)

    def test_restore_partial_undoes_finalize(self, share_dir):
        share_storage.append_chunk("s1", FILE_ID, b"hello world!")
        share_storage.finalize_partial("s1", FILE_ID)

        share_storage.restore_partial("s1", FILE_ID, 10)

        assert not share_storage.get_file_path("s1", FILE_ID).exists()
        assert share_storage.get_partial_path("s1", FILE_ID).read_bytes() == b"hello worl"

    def test_stream_file_yields_pieces_and_closes(self, share_dir):
        share_storage.append_chunk("s1", FILE_ID, b"abcdefghij")
        share_storage.finalize_partial("s1", FILE_ID)

        handle = share_storage.open_file("s1", FILE_ID)
        pieces = list(share_storage.stream_file(handle, piece_size=4))

        assert pieces == [b"abcd", b"efgh", b"ij"]
        assert handle.closed

    def test_open_missing_file_raises(self, share_dir):
        with pytest.raises(FileNotFoundError):
            share_storage.open_file("s1", FILE_ID)

    def test_delete_file_tolerates_absence(self, share_dir):
        share_storage.append_chunk("s1", FILE_ID, b"x")
        share_storage.finalize_partial("s1", FILE_ID)

        assert share_storage.delete_file("s1", FILE_ID) is True
        assert share_storage.delete_file("s1", FILE_ID) is False

    def test_delete_partial_tolerates_absence(self, share_dir):
        share_storage.append_chunk("s1", FILE_ID, b"x")

        assert share_storage.delete_partial("s1", FILE_ID) is True
        assert share_storage.delete_partial("s1", FILE_ID) is False


class TestShareDirectory:
    """Test share-wide purge and partial listing."""

    def test_delete_share_directory_removes_everything(self, share_dir):
        share_storage.append_chunk("s1", FILE_ID, b"done")
        share_storage.finalize_partial("s1", FILE_ID)
        share_storage.append_chunk("s1", "0d8e2f5a-7b34-4c1e-8f0a-5e6d7c8b9a01", b"partial")

        share_storage.delete_share_directory("s1")

        assert not (share_dir / "s1").exists()

    def test_delete_share_directory_is_idempotent(self, share_dir):
        share_storage.delete_share_directory("missing")
        share_storage.delete_share_directory("missing")

    def test_list_partial_uploads(self, share_dir):
        other_id = "0d8e2f5a-7b34-4c1e-8f0a-5e6d7c8b9a01"
        share_storage.append_chunk("s1", FILE_ID, b"partial")
        share_storage.append_chunk("s2", other_id, b"done")
        share_storage.finalize_partial("s2", other_id)
        os.utime(share_storage.get_partial_path("s1", FILE_ID), (1000, 1000))

        partials = share_storage.list_partial_uploads()

        assert partials == [("s1", FILE_ID, 1000)]

    def test_list_partial_uploads_without_root(self, share_dir):
        assert share_storage.list_partial_uploads() == []


def test_default_shares_dir_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("SHAREDROP_SHARE_DIRECTORY", str(tmp_path / "elsewhere"))

    assert share_storage.default_shares_dir() == tmp_path / "elsewhere"


def test_default_shares_dir_fallback(monkeypatch):
    monkeypatch.delenv("SHAREDROP_SHARE_DIRECTORY", raising=False)

    assert str(share_storage.default_shares_dir()) == "/app/data/uploads/shares"


class TestShareArchive:
    """Test building and removing the share archive."""

    SECOND_ID = "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d"

    def _finalized(self, file_id, content):
        share_storage.append_chunk("s1", file_id, content)
        share_storage.finalize_partial("s1", file_id)

    def test_archive_entry_names_are_unique(self):
        names = share_storage.archive_entry_names(["a.txt", "a.txt", "README", "README", "a.txt"])

        assert names == ["a.txt", "a (1).txt", "README", "README (1)", "a (2).txt"]

    def test_write_archive_contains_every_file(self, share_dir):
        self._finalized(FILE_ID, b"first")
        self._finalized(self.SECOND_ID, b"second")

        size = share_storage.write_archive("s1", [(FILE_ID, "notes.txt"), (self.SECOND_ID, "notes.txt")])

        archive_path = share_storage.get_archive_path("s1")
        assert archive_path.stat().st_size == size
        with zipfile.ZipFile(archive_path) as archive:
            assert archive.namelist() == ["notes.txt", "notes (1).txt"]
            assert archive.read("notes.txt") == b"first"
            assert archive.read("notes (1).txt") == b"second"

    def test_write_archive_with_missing_artifact_leaves_nothing(self, share_dir):
        self._finalized(FILE_ID, b"first")

        with pytest.raises(OSError):
            share_storage.write_archive("s1", [(FILE_ID, "a.txt"), (self.SECOND_ID, "b.txt")])

        assert not share_storage.get_archive_path("s1").exists()
        assert not (share_dir / "s1" / "archive.zip.tmp").exists()

    def test_archive_is_not_listed_as_partial(self, share_dir):
        self._finalized(FILE_ID, b"first")
        share_storage.write_archive("s1", [(FILE_ID, "a.txt")])

        assert share_storage.list_partial_uploads() == []

    def test_delete_archive_tolerates_absence(self, share_dir):
        self._finalized(FILE_ID, b"first")
        share_storage.write_archive("s1", [(FILE_ID, "a.txt")])

        assert share_storage.delete_archive("s1") is True
        assert share_storage.delete_archive("s1") is False
