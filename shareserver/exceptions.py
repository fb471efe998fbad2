"""Custom exception classes for the share server."""


class ShareDropException(Exception):
    """
    Base exception class for all share upload errors.
    """
    pass


class ShareNotFoundError(ShareDropException):
    """
    Raised when a share id does not exist.
    """
    pass


class SharedFileNotFoundError(ShareDropException):
    """
    Raised when a requested file does not exist in the metadata store.
    """
    pass


class ShareLockedError(ShareDropException):
    """
    Raised when a chunk arrives for a share that has already been completed.
    """
    pass


class InvalidShareStateError(ShareDropException):
    """
    Raised when a share cannot transition to the requested state.
    """
    pass


class InvalidShareIdError(ShareDropException):
    """
    Raised when a share id is malformed or already in use.
    """
    pass


class UnexpectedChunkIndexError(ShareDropException):
    """
    Raised when a chunk index does not match the bytes already on disk.

    The client resumes by sending expected_chunk_index next.
    """

    def __init__(self, message: str, expected_chunk_index: int):
        super().__init__(message)
        self.expected_chunk_index = expected_chunk_index


class MaxShareSizeExceededError(ShareDropException):
    """
    Raised when a chunk would push a share past its size limit.
    """
    pass


class InvalidChunkError(ShareDropException):
    """
    Raised for malformed chunk requests (bad index, file id or payload).
    """
    pass


class StorageIOError(ShareDropException):
    """
    Raised when reading or writing an artifact fails.
    """
    pass
