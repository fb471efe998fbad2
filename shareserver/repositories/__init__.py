"""Repository layer for data access."""

from shareserver.repositories.share_repository import ShareRepository
from shareserver.repositories.file_repository import FileRepository
from shareserver.repositories.reverse_share_repository import ReverseShareRepository

__all__ = [
    "ShareRepository",
    "FileRepository",
    "ReverseShareRepository",
]
