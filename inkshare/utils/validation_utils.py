"""
inkshare/utils/validation_utils.py

Purpose: Input validation

- Search term normalization
- Handle cleanup
- Attachment type checks
"""

import re

PDF_MIME_TYPE = "application/pdf"

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


def normalize_search_text(text: str) -> str:
    """
    Lower-cases `text` and drops everything but ASCII letters and digits.

    Example:
        "Invoice 2023" -> "invoice2023"
    """
    return _NON_ALPHANUMERIC.sub("", (text or "").lower())


def strip_handle_prefix(handle: str) -> str:
    """Removes one leading '@' from a Telegram handle."""
    handle = (handle or "").strip()
    return handle[1:] if handle.startswith("@") else handle


def is_pdf_mime_type(mime_type: str | None) -> bool:
    return mime_type == PDF_MIME_TYPE
