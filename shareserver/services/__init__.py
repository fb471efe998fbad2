"""Service layer for business logic."""

from shareserver.services.config_service import ConfigService
from shareserver.services.file_service import FileService
from shareserver.services.share_service import ShareService

__all__ = [
    "ConfigService",
    "FileService",
    "ShareService",
]
