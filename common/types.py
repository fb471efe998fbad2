"""Shared data type definitions (upload results, file metadata)."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ChunkUploadResult:
    """
    Outcome of a single accepted chunk.
    """
    file_id: str
    name: str
    bytes_received: int
    completed: bool


@dataclass(frozen=True)
class FileMetadata:
    """
    Metadata for a finalized file as delivered to downloaders.
    """
    file_id: str
    name: str
    size: int
    share_id: str
    mime_type: Optional[str] = None
