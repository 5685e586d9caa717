"""
inkshare/models/user.py

Purpose: User record model

- Telegram user id is the record key (not stored in the record)
- reMarkable device token
- Public handle used by others to address transfers
- At most one pending inbound file
"""

import base64
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class UserRecord(BaseModel):
    """
    Durable per-user state. A record exists only once /register succeeded.
    """
    access_token: Optional[str] = Field(default=None, description="reMarkable device token")
    handle: Optional[str] = Field(default=None, description="Telegram username without '@'")
    pending_file: Optional[bytes] = Field(default=None, description="Archive awaiting /accept or /refuse")

    @property
    def has_pending_file(self) -> bool:
        return bool(self.pending_file)

    def merged(self, update: "UserRecordUpdate") -> "UserRecord":
        """Returns a copy with only the fields explicitly set on `update` overlaid."""
        return self.model_copy(update=update.changes())

    def to_json_dict(self) -> Dict[str, Any]:
        """JSON-safe form; the pending file is base64 encoded."""
        data = self.model_dump()
        if self.pending_file is not None:
            data["pending_file"] = base64.b64encode(self.pending_file).decode("ascii")
        return data

    @classmethod
    def from_json_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        data = dict(data)
        pending = data.get("pending_file")
        if isinstance(pending, str):
            data["pending_file"] = base64.b64decode(pending)
        return cls.model_validate(data)


class UserRecordUpdate(BaseModel):
    """
    Partial update for a UserRecord.

    Only fields passed to the constructor are applied, so
    `UserRecordUpdate(pending_file=None)` clears the pending file while
    `UserRecordUpdate(handle="bob")` leaves it untouched.
    """
    access_token: Optional[str] = None
    handle: Optional[str] = None
    pending_file: Optional[bytes] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)
