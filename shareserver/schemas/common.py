"""Common schemas used across multiple endpoints."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    code: str


class UnexpectedChunkErrorResponse(ErrorResponse):
    """Response model for a chunk sent out of order."""
    expected_chunk_index: int


class PublicConfigResponse(BaseModel):
    """Response model for the settings clients chunk with."""
    chunk_size: int
    max_share_size: int
