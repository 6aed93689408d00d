"""Destination key generation."""

import re
from pathlib import PurePosixPath
from uuid import uuid4


def sanitize_segment(value: str) -> str:
    """Remove path traversal and dangerous characters from a key segment."""
    safe = value.replace("../", "").replace("..\\", "")
    safe = safe.replace("/", "_").replace("\\", "_")
    safe = re.sub(r"[^a-zA-Z0-9._-]", "_", safe)
    safe = safe.lstrip(".")
    return safe[:255] or "_"


def generate_destination_key(pad_id: str, filename: str) -> str:
    """Build a unique storage key ``{pad}/{token}{ext}`` for one upload.

    The token is a random UUID4, so keys never collide across uploads even
    for the same pad and filename. The original extension is kept as sent.
    """
    name = PurePosixPath(filename.replace("\\", "/")).name
    extension = PurePosixPath(name).suffix
    if extension:
        extension = "." + re.sub(r"[^a-zA-Z0-9]", "", extension)
        if extension == ".":
            extension = ""
    return f"{sanitize_segment(pad_id)}/{uuid4().hex}{extension}"
