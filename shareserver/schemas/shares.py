"""Pydantic schemas for share and file endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field


class CreateShareRequest(BaseModel):
    """Request model for share creation."""
    id: str
    reverse_share_id: Optional[str] = None
    max_share_size: Optional[int] = Field(default=None, ge=0)


class ShareFileResponse(BaseModel):
    """Response model for a completed file."""
    id: str
    name: str
    size: int


class ShareResponse(BaseModel):
    """Response model for a share and its completed files."""
    id: str
    upload_locked: bool
    max_share_size: int
    remaining_share_size: int
    files: List[ShareFileResponse]


class UploadChunkResponse(BaseModel):
    """Response model for an accepted chunk."""
    id: str
    name: str
    completed: bool
    bytes_received: int
