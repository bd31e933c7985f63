"""Utility helper functions for the upload server."""

import mimetypes
import random
import time
from datetime import datetime, timezone
from pathlib import PurePath

DEFAULT_MIME_TYPE = "application/octet-stream"


def generate_filename(original_name: str) -> str:
    """
    Generate a stored file name: ``<ms-timestamp>-<random><ext>``.

    Args:
        original_name: Client-supplied name, used only for its extension

    Returns:
        Generated name, e.g. "1718000000000-483920112.pdf"
    """
    suffix = PurePath(original_name).suffix if original_name else ""
    return f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999)}{suffix}"


def get_current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def guess_mime_type(original_name: str) -> str:
    mime_type, _ = mimetypes.guess_type(original_name)
    return mime_type or DEFAULT_MIME_TYPE
