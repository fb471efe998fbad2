"""Manages share artifacts on disk: partial upload append, finalize, stream, delete."""

import os
import shutil
import zipfile
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Tuple

from common.constants import (
    DEFAULT_SHARE_DIRECTORY,
    PARTIAL_UPLOAD_SUFFIX,
    SHARE_ARCHIVE_NAME,
    STREAM_PIECE_SIZE,
)
from common.logging_config import get_logger

logger = get_logger(__name__)


def default_shares_dir() -> Path:
    """Storage root from SHAREDROP_SHARE_DIRECTORY, or the default location."""
    return Path(os.environ.get("SHAREDROP_SHARE_DIRECTORY", DEFAULT_SHARE_DIRECTORY))


SHARES_DIR = default_shares_dir()


def get_share_directory(share_id: str) -> Path:
    """Directory holding every artifact of a share."""
    return SHARES_DIR / share_id


def get_partial_path(share_id: str, file_id: str) -> Path:
    """
    Get path of the in-progress artifact for a file.

    Args:
        share_id: Share the file belongs to
        file_id: UUID of the file

    Returns:
        Path object for the partial upload artifact
    """
    return get_share_directory(share_id) / f"{file_id}{PARTIAL_UPLOAD_SUFFIX}"


def get_file_path(share_id: str, file_id: str) -> Path:
    """
    Get path of the finalized artifact for a file.

    Args:
        share_id: Share the file belongs to
        file_id: UUID of the file

    Returns:
        Path object for the final artifact
    """
    return get_share_directory(share_id) / file_id


def get_partial_size(share_id: str, file_id: str) -> int:
    """
    Number of bytes received so far for an in-progress upload.

    Returns:
        Size of the partial artifact, or 0 if none exists
    """
    try:
        return get_partial_path(share_id, file_id).stat().st_size
    except FileNotFoundError:
        return 0


def append_chunk(share_id: str, file_id: str, data: bytes) -> int:
    """
    Append chunk data to the partial artifact, creating it if absent.

    On failure the artifact is cut back to its previous length so a
    retried chunk starts from a clean boundary.

    Args:
        share_id: Share the file belongs to
        file_id: UUID of the file
        data: Decoded chunk bytes (may be empty)

    Returns:
        Size of the partial artifact after the append

    Raises:
        OSError: If the write fails
    """
    filepath = get_partial_path(share_id, file_id)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    previous_size = get_partial_size(share_id, file_id)

    try:
        with open(filepath, 'ab') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
    except OSError:
        _truncate_quietly(filepath, previous_size)
        raise

    return previous_size + len(data)


def finalize_partial(share_id: str, file_id: str) -> int:
    """
    Rename the partial artifact to its final name.

    Returns:
        Byte length of the final artifact

    Raises:
        FileNotFoundError: If no partial artifact exists
        OSError: If the rename fails
    """
    partial_path = get_partial_path(share_id, file_id)
    final_path = get_file_path(share_id, file_id)
    os.replace(partial_path, final_path)
    return final_path.stat().st_size


def restore_partial(share_id: str, file_id: str, size: int) -> None:
    """
    Undo a finalize: move the final artifact back to partial state, cut to size.

    Raises:
        OSError: If the artifact cannot be moved back
    """
    final_path = get_file_path(share_id, file_id)
    partial_path = get_partial_path(share_id, file_id)
    os.replace(final_path, partial_path)
    os.truncate(partial_path, size)


def truncate_partial(share_id: str, file_id: str, size: int) -> None:
    """Cut a partial artifact back to size bytes, removing it when size is 0."""
    _truncate_quietly(get_partial_path(share_id, file_id), size)


def open_file(share_id: str, file_id: str) -> BinaryIO:
    """
    Open a finalized artifact for reading.

    Raises:
        FileNotFoundError: If the final artifact does not exist
    """
    return open(get_file_path(share_id, file_id), 'rb')


def stream_file(handle: BinaryIO, piece_size: int = STREAM_PIECE_SIZE) -> Iterator[bytes]:
    """
    Stream an opened artifact in pieces and close it afterwards.

    Args:
        handle: File object returned by open_file()
        piece_size: Size of each piece in bytes (default 64KB)

    Yields:
        Artifact data pieces
    """
    with handle:
        while True:
            piece = handle.read(piece_size)
            if not piece:
                break
            yield piece


def delete_file(share_id: str, file_id: str) -> bool:
    """
    Delete a finalized artifact.

    Returns:
        True if the artifact was deleted, False if it didn't exist
    """
    try:
        get_file_path(share_id, file_id).unlink()
        return True
    except FileNotFoundError:
        return False


def delete_partial(share_id: str, file_id: str) -> bool:
    """
    Delete an in-progress artifact.

    Returns:
        True if the artifact was deleted, False if it didn't exist
    """
    try:
        get_partial_path(share_id, file_id).unlink()
        return True
    except FileNotFoundError:
        return False


def delete_share_directory(share_id: str) -> None:
    """Recursively remove a share directory, tolerating its absence."""
    try:
        shutil.rmtree(get_share_directory(share_id))
    except FileNotFoundError:
        pass


def get_archive_path(share_id: str) -> Path:
    return get_share_directory(share_id) / SHARE_ARCHIVE_NAME


def archive_entry_names(names: Iterable[str]) -> List[str]:
    """
    Make file names unique for use as archive entries.

    Repeated names get a " (n)" suffix before the extension, so
    ["a.txt", "a.txt"] becomes ["a.txt", "a (1).txt"].
    """
    seen = set()
    entries = []
    for name in names:
        candidate = name
        counter = 1
        while candidate in seen:
            stem, dot, extension = name.rpartition(".")
            if not stem:
                stem, dot, extension = name, "", ""
            candidate = f"{stem} ({counter}){dot}{extension}"
            counter += 1
        seen.add(candidate)
        entries.append(candidate)
    return entries


def write_archive(share_id: str, files: List[Tuple[str, str]]) -> int:
    """
    Build the share archive from finalized artifacts.

    The archive is written under a temporary name and renamed into place,
    so a reader never sees a half-written archive.

    Args:
        share_id: Share to archive
        files: (file_id, original name) pairs in archive order

    Returns:
        Size of the archive in bytes

    Raises:
        OSError: If an artifact is missing or the archive cannot be written
    """
    archive_path = get_archive_path(share_id)
    temp_path = archive_path.with_name(f"{SHARE_ARCHIVE_NAME}.tmp")
    archive_path.parent.mkdir(parents=True, exist_ok=True)

    entry_names = archive_entry_names(name for _, name in files)
    try:
        with zipfile.ZipFile(temp_path, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
            for (file_id, _), entry_name in zip(files, entry_names):
                archive.write(get_file_path(share_id, file_id), arcname=entry_name)
        os.replace(temp_path, archive_path)
    except OSError:
        _truncate_quietly(temp_path, 0)
        raise

    return archive_path.stat().st_size


def open_archive(share_id: str) -> BinaryIO:
    """
    Open the share archive for reading.

    Raises:
        FileNotFoundError: If the share has no archive
    """
    return open(get_archive_path(share_id), 'rb')


def delete_archive(share_id: str) -> bool:
    """
    Delete the share archive.

    Returns:
        True if the archive was deleted, False if it didn't exist
    """
    try:
        get_archive_path(share_id).unlink()
        return True
    except FileNotFoundError:
        return False


def list_partial_uploads() -> List[Tuple[str, str, float]]:
    """
    List every partial artifact under the shares directory.

    Returns:
        List of (share_id, file_id, mtime) tuples
    """
    if not SHARES_DIR.exists():
        return []

    partials = []
    for filepath in SHARES_DIR.glob(f"*/*{PARTIAL_UPLOAD_SUFFIX}"):
        file_id = filepath.name[:-len(PARTIAL_UPLOAD_SUFFIX)]
        try:
            mtime = filepath.stat().st_mtime
        except FileNotFoundError:
            continue
        partials.append((filepath.parent.name, file_id, mtime))
    return partials


def _truncate_quietly(filepath: Path, size: int) -> None:
    try:
        if size == 0:
            filepath.unlink()
        else:
            os.truncate(filepath, size)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Failed to roll back partial artifact {filepath} to {size} bytes: {e}")
