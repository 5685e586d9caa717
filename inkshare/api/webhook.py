"""
inkshare/api/webhook.py

Purpose: Telegram webhook endpoint

- Receives Telegram updates
- Verifies the webhook secret token when one is configured
- Normalizes the update and hands it to the dispatcher in the background
- Answers Telegram immediately
"""

from fastapi import APIRouter, BackgroundTasks, Header, Request
from typing import Optional

from inkshare.core.config import settings
from inkshare.core.exceptions import AuthenticationError
from inkshare.core.logging import get_logger
from inkshare.schemas.response import WebhookAck
from inkshare.schemas.telegram import TelegramUpdate, parse_telegram_update

logger = get_logger(__name__)
router = APIRouter()


@router.post("/telegram/webhook", response_model=WebhookAck)
async def telegram_webhook(
    update: TelegramUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
):
    """
    Webhook endpoint for Telegram updates.

    Each update is dispatched as its own background task, so slow
    uploads never hold up other users.
    """
    expected_secret = settings.TELEGRAM_WEBHOOK_SECRET
    if expected_secret and x_telegram_bot_api_secret_token != expected_secret:
        logger.warning(f"Rejected webhook call for update {update.update_id}: bad secret token")
        raise AuthenticationError("Invalid webhook secret token")

    interaction = parse_telegram_update(update)
    logger.info(
        f"📱 Telegram update {update.update_id} from {interaction.sender_handle or interaction.sender_id}"
    )

    dispatcher = request.app.state.dispatcher
    background_tasks.add_task(dispatcher.dispatch, interaction)

    return WebhookAck(update_id=update.update_id)


@router.get("/telegram/webhook")
async def webhook_verification():
    """
    Lets operators check that the webhook route is mounted.
    """
    return {"status": "ok", "message": "Webhook endpoint is active"}
