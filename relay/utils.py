"""Utility helper functions for the relay server."""

import uuid
from urllib.parse import quote

from relay.config import MAX_FILE_NAME_BYTES
from relay.exceptions import InvalidFileNameError, MissingFileNameError


def generate_request_id() -> str:
    """
    Generate a new request ID.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def validate_file_name(file_name: str | None) -> str:
    """
    Check that a client-supplied file name is safe to use as a storage key.

    Args:
        file_name: Name as sent by the client

    Returns:
        The unchanged file name

    Raises:
        MissingFileNameError: If the name is None or empty
        InvalidFileNameError: If the name contains a path component, a control
            character, or is too long
    """
    if not file_name:
        raise MissingFileNameError("File name is required")

    if file_name in (".", ".."):
        raise InvalidFileNameError(f"Invalid file name: {file_name!r}")

    if "/" in file_name or "\\" in file_name:
        raise InvalidFileNameError("File name must not contain path separators")

    if any(_is_control(ch) for ch in file_name):
        raise InvalidFileNameError("File name must not contain control characters")

    if len(file_name.encode("utf-8")) > MAX_FILE_NAME_BYTES:
        raise InvalidFileNameError(f"File name exceeds {MAX_FILE_NAME_BYTES} bytes")

    return file_name


def content_disposition(file_name: str) -> str:
    """
    Build an attachment Content-Disposition header value.

    Non-ASCII names are carried in the RFC 5987 ``filename*`` parameter; the
    plain ``filename`` parameter gets an ASCII fallback for old clients.

    Args:
        file_name: Original artifact name

    Returns:
        Header value
    """
    fallback = file_name.encode("ascii", "replace").decode("ascii")
    fallback = "".join("_" if _is_control(ch) or ch in '\\"' else ch for ch in fallback)
    encoded = quote(file_name, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def _is_control(ch: str) -> bool:
    return ch < " " or ch == "\x7f"
