"""
File type and size checks for uploads.

A past-question upload is accepted when either its declared MIME type or
its extension is on the allow list. Event images are accepted by MIME
type only; anything else is treated as "no image".
"""

import re

from packages.shared.exceptions import ValidationError

ALLOWED_DOCUMENT_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
    }
)

ALLOWED_DOCUMENT_EXTENSIONS = frozenset(
    {".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png", ".gif", ".webp"}
)

DISALLOWED_TYPE_MESSAGE = "Only PDF, Word, and image files are allowed"

DEFAULT_DOWNLOAD_NAME = "past-question"
MAX_FILENAME_LENGTH = 255

# Quotes, backslashes and slashes can't appear in a quoted Content-Disposition filename
_UNSAFE_FILENAME_CHARS = re.compile(r'["\\/]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def file_extension(filename: str | None) -> str:
    """Lowercased extension including the dot, or '' if there is none."""
    if not filename or "." not in filename:
        return ""
    return "." + filename.rsplit(".", 1)[1].lower()


def is_allowed_document(filename: str | None, mime_type: str | None) -> bool:
    """Check a past-question upload against the MIME and extension allow lists."""
    if mime_type and mime_type.lower() in ALLOWED_DOCUMENT_MIME_TYPES:
        return True
    return file_extension(filename) in ALLOWED_DOCUMENT_EXTENSIONS


def is_image(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("image/")


def validate_document(filename: str | None, mime_type: str | None) -> None:
    """
    Raises:
        ValidationError: If the file is neither an allowed type nor extension
    """
    if not is_allowed_document(filename, mime_type):
        raise ValidationError(
            DISALLOWED_TYPE_MESSAGE,
            errors=[{"field": "file", "message": f"Unsupported file: {filename or 'unnamed'}"}],
        )


def validate_size(size: int, max_bytes: int, label: str = "File") -> None:
    """
    Raises:
        ValidationError: If `size` exceeds `max_bytes`
    """
    if size > max_bytes:
        max_mb = max_bytes // (1024 * 1024)
        raise ValidationError(
            f"{label} too large. Maximum size is {max_mb}MB",
            errors=[{"field": "file", "message": f"{size} bytes exceeds {max_bytes}"}],
        )


def sanitize_filename(filename: str | None) -> str:
    """
    Make a filename safe for a quoted Content-Disposition header.

    Removes quotes, backslashes, slashes, control characters and `..`
    sequences, then truncates. Falls back to a fixed name when nothing
    usable is left.
    """
    if not filename:
        return DEFAULT_DOWNLOAD_NAME
    cleaned = _CONTROL_CHARS.sub("", filename)
    cleaned = _UNSAFE_FILENAME_CHARS.sub("", cleaned)
    while ".." in cleaned:
        cleaned = cleaned.replace("..", "")
    cleaned = cleaned.strip()[:MAX_FILENAME_LENGTH]
    return cleaned or DEFAULT_DOWNLOAD_NAME
