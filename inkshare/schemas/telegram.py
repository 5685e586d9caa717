"""
inkshare/schemas/telegram.py

Purpose: Telegram webhook payload schemas and parsers

- Validates incoming Telegram updates
- Normalizes them into an Interaction for the dispatcher
- Ensures predictable request handling
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    is_bot: bool = False
    first_name: str = ""
    username: Optional[str] = None


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = "private"


class TelegramDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file_id: str
    file_unique_id: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int
    date: int = 0
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None
    caption: Optional[str] = None
    document: Optional[TelegramDocument] = None


class TelegramUpdate(BaseModel):
    """
    Subset of the Telegram Update object the bot understands.
    Other update kinds are accepted and normalize to a senderless interaction.
    """
    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[TelegramMessage] = None
    edited_message: Optional[TelegramMessage] = None
    channel_post: Optional[TelegramMessage] = None

    @property
    def effective_message(self) -> Optional[TelegramMessage]:
        return self.message or self.edited_message or self.channel_post


class Attachment(BaseModel):
    """A binary file attached to an interaction."""
    file_id: str
    mime_type: Optional[str] = None
    file_name: Optional[str] = None


class Interaction(BaseModel):
    """
    Normalized inbound event for internal processing
    """
    update_id: int = Field(..., description="Telegram update id")
    chat_id: Optional[int] = Field(default=None, description="Chat replies go to")
    sender_id: Optional[int] = Field(default=None, description="Telegram user id of the sender")
    sender_handle: Optional[str] = Field(default=None, description="Telegram username of the sender")
    text: Optional[str] = None
    attachment: Optional[Attachment] = None
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_command(self) -> bool:
        return bool(self.text) and self.text.startswith("/")


def parse_telegram_update(update: TelegramUpdate) -> Interaction:
    """
    Flattens a Telegram update into an Interaction.

    channel posts carry no `from` and therefore no sender identity.
    """
    message = update.effective_message
    if message is None:
        return Interaction(update_id=update.update_id)

    sender = message.from_user if update.channel_post is None else None

    attachment = None
    if message.document is not None:
        attachment = Attachment(
            file_id=message.document.file_id,
            mime_type=message.document.mime_type,
            file_name=message.document.file_name,
        )

    return Interaction(
        update_id=update.update_id,
        chat_id=message.chat.id,
        sender_id=sender.id if sender else None,
        sender_handle=sender.username if sender else None,
        text=message.text,
        attachment=attachment,
    )
