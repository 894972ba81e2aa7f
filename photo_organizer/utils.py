"""
Utility functions for photo organizer processing.
"""

import datetime
import mimetypes
import os
import re
import uuid
from typing import List, Optional


def new_id(prefix: str) -> str:
    """
    Generate an opaque, unique identifier.

    Args:
        prefix: Entity kind, e.g. "photo" or "brand"

    Returns:
        Identifier such as "photo_3f2a..."
    """
    return f"{prefix}_{uuid.uuid4().hex}"


def now() -> datetime.datetime:
    """Current local time, truncated to milliseconds like the stored timestamps."""
    current = datetime.datetime.now()
    return current.replace(microsecond=(current.microsecond // 1000) * 1000)


def format_file_size(size_bytes: int) -> str:
    """
    Convert a byte count to a human readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        String like "0 Bytes", "512 Bytes" or "1.5 KB"
    """
    if size_bytes <= 0:
        return "0 Bytes"

    units = ['Bytes', 'KB', 'MB', 'GB']
    index = 0
    value = float(size_bytes)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    # Drop trailing zeros: 1.50 -> 1.5, 2.00 -> 2
    text = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{text} {units[index]}"


def guess_mime_type(path: str) -> Optional[str]:
    """
    Guess the MIME type of a file from its extension.

    Args:
        path: File path or name

    Returns:
        MIME type string or None if unknown
    """
    mime_type, _ = mimetypes.guess_type(os.path.basename(path))
    return mime_type


def is_image_mime_type(mime_type: Optional[str]) -> bool:
    return bool(mime_type) and mime_type.startswith('image/')


def split_list(text: Optional[str]) -> List[str]:
    """
    Split comma separated operator input into trimmed, non-empty entries.

    Args:
        text: Raw text such as "Nike, Adidas,"

    Returns:
        List of entries, e.g. ["Nike", "Adidas"]
    """
    if not text:
        return []
    return [part.strip() for part in text.split(',') if part.strip()]


def parse_date(value: str) -> datetime.date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If the value is not a valid ISO calendar date
    """
    return datetime.date.fromisoformat(value.strip())


_TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def parse_time(value: str) -> str:
    """
    Validate an HH:MM time string.

    Raises:
        ValueError: If the value is not a 24-hour HH:MM time
    """
    value = value.strip()
    if not _TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time: {value!r} (expected HH:MM)")
    return value
