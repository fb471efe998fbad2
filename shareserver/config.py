"""Configuration settings for the share server."""

import os

from common.constants import (
    DEFAULT_CHUNK_SIZE_BYTES,
    DEFAULT_MAX_SHARE_SIZE_BYTES,
    DEFAULT_PARTIAL_UPLOAD_MAX_AGE_SECONDS,
    DEFAULT_CLEANUP_INTERVAL_SECONDS,
)


DATABASE_PATH = os.environ.get("SHAREDROP_DATABASE_PATH", "/app/data/metadata.db")

SERVER_HOST = os.environ.get("SHAREDROP_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("SHAREDROP_PORT", "8080"))

CHUNK_SIZE = int(os.environ.get("SHAREDROP_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE_BYTES)))

MAX_SHARE_SIZE = int(os.environ.get("SHAREDROP_MAX_SHARE_SIZE", str(DEFAULT_MAX_SHARE_SIZE_BYTES)))

PARTIAL_UPLOAD_MAX_AGE = int(
    os.environ.get("SHAREDROP_PARTIAL_UPLOAD_MAX_AGE", str(DEFAULT_PARTIAL_UPLOAD_MAX_AGE_SECONDS))
)

CLEANUP_INTERVAL = int(os.environ.get("SHAREDROP_CLEANUP_INTERVAL", str(DEFAULT_CLEANUP_INTERVAL_SECONDS)))
