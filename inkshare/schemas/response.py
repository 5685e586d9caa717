from pydantic import BaseModel
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class WebhookAck(BaseModel):
    """
    Body returned to Telegram once an update has been queued.
    """
    ok: bool = True
    update_id: Optional[int] = None
    queued: bool = True
