"""Utility helper functions for the share server."""

import mimetypes
import re
import uuid

from common.constants import SHARE_ID_PATTERN

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Extensions the platform registry often lacks or maps inconsistently.
CONTENT_TYPES = {
    "md": "text/markdown",
    "json": "application/json",
    "webp": "image/webp",
    "heic": "image/heic",
    "mkv": "video/x-matroska",
    "7z": "application/x-7z-compressed",
    "rar": "application/vnd.rar",
}

_share_id_re = re.compile(SHARE_ID_PATTERN)


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def is_valid_uuid(value: str) -> bool:
    """
    Check that a value is a canonical UUID string.

    Args:
        value: Candidate identifier

    Returns:
        True if value is a lowercase hyphenated UUID
    """
    try:
        return str(uuid.UUID(value)) == value
    except (ValueError, AttributeError, TypeError):
        return False


def is_valid_share_id(share_id: str) -> bool:
    return _share_id_re.fullmatch(share_id) is not None


def content_type_for(file_name: str) -> str:
    """
    Derive a Content-Type from a file name's extension.

    Text types carry a utf-8 charset. Names without an extension, or with
    an unknown one, fall back to application/octet-stream.

    Args:
        file_name: Original file name (e.g., "report.pdf")

    Returns:
        MIME type string
    """
    if "." not in file_name:
        return DEFAULT_CONTENT_TYPE

    extension = file_name.rsplit(".", 1)[1].lower()
    if not extension:
        return DEFAULT_CONTENT_TYPE

    mime_type = CONTENT_TYPES.get(extension)
    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(f"file.{extension}", strict=False)
    if mime_type is None:
        return DEFAULT_CONTENT_TYPE

    if mime_type.startswith("text/") or mime_type == "application/json":
        return f"{mime_type}; charset=utf-8"
    return mime_type
