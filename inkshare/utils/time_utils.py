"""
inkshare/utils/time_utils.py

Purpose: Date helpers for generated document names
"""

from datetime import date
from typing import Optional


def shared_file_name(day: Optional[date] = None) -> str:
    """
    Name given to a document accepted from another user.

    Example:
        date(2026, 10, 19) -> "Shared file Mon Oct 19 2026"
    """
    day = day or date.today()
    return f"Shared file {day.strftime('%a %b %d %Y')}"
