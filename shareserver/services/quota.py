"""Share size accounting for chunk ingestion."""

from typing import Iterable, List

from shareserver.exceptions import MaxShareSizeExceededError
from shareserver.repositories.share_repository import Share


def calculate_share_size(finalized_sizes: Iterable[int], bytes_received: int, chunk_length: int) -> int:
    """
    Total bytes a share would hold once the incoming chunk is written.

    Args:
        finalized_sizes: Sizes of files already registered in the share
        bytes_received: Bytes already on disk for the file being uploaded
        chunk_length: Decoded length of the incoming chunk

    Returns:
        Candidate share size in bytes
    """
    return sum(finalized_sizes) + bytes_received + chunk_length


def share_size_limits(share: Share, default_max_size: int) -> List[int]:
    """Every byte limit that applies to a share, in no particular order."""
    limits = [default_max_size]
    if share.max_share_size is not None:
        limits.append(share.max_share_size)
    if share.reverse_share is not None:
        limits.append(share.reverse_share.max_share_size)
    return limits


def check_share_size(share: Share, bytes_received: int, chunk_length: int, default_max_size: int) -> int:
    """
    Reject a chunk that would push the share past its strictest limit.

    Args:
        share: Share with its finalized files and reverse share loaded
        bytes_received: Bytes already on disk for the file being uploaded
        chunk_length: Decoded length of the incoming chunk
        default_max_size: Configured share.maxSize

    Returns:
        Candidate share size in bytes

    Raises:
        MaxShareSizeExceededError: If the candidate total exceeds any limit
    """
    total = calculate_share_size((f.size for f in share.files), bytes_received, chunk_length)
    limit = min(share_size_limits(share, default_max_size))

    if total > limit:
        raise MaxShareSizeExceededError(
            f"Max share size exceeded: {total} bytes would exceed the limit of {limit} bytes"
        )
    return total


def remaining_share_size(share: Share, default_max_size: int) -> int:
    """Bytes still available in a share, never negative."""
    used = calculate_share_size((f.size for f in share.files), 0, 0)
    return max(min(share_size_limits(share, default_max_size)) - used, 0)
