"""Pydantic schemas for API requests and responses."""

from shareserver.schemas.common import ErrorResponse, UnexpectedChunkErrorResponse, PublicConfigResponse
from shareserver.schemas.shares import (
    CreateShareRequest,
    ShareFileResponse,
    ShareResponse,
    UploadChunkResponse,
)

__all__ = [
    "ErrorResponse",
    "UnexpectedChunkErrorResponse",
    "PublicConfigResponse",
    "CreateShareRequest",
    "ShareFileResponse",
    "ShareResponse",
    "UploadChunkResponse",
]
