"""Project-wide constants (chunk size, share limits, on-disk layout)."""

DEFAULT_CHUNK_SIZE_BYTES: int = 10_000_000  # must match the client's chunking
DEFAULT_MAX_SHARE_SIZE_BYTES: int = 1_000_000_000

DEFAULT_SHARE_DIRECTORY = "/app/data/uploads/shares"
PARTIAL_UPLOAD_SUFFIX = ".tmp-chunk"
SHARE_ARCHIVE_NAME = "archive.zip"

DEFAULT_PARTIAL_UPLOAD_MAX_AGE_SECONDS: int = 24 * 3600
DEFAULT_CLEANUP_INTERVAL_SECONDS: int = 3600

STREAM_PIECE_SIZE: int = 64 * 1024

SHARE_ID_PATTERN = r"[a-zA-Z0-9_-]{3,50}"
