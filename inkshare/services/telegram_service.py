"""
inkshare/services/telegram_service.py

Purpose: Telegram Bot API access

- Sends text messages (replies and cross-user notifications)
- Downloads attached files into memory
- Registers the webhook on startup
"""

import httpx
from typing import Dict, Any, Optional, Protocol

from inkshare.core.exceptions import TransportFailure
from inkshare.core.logging import get_logger

logger = get_logger(__name__)


class Messenger(Protocol):
    """Outbound transport used by the dispatcher and transfer service."""

    async def send_message(self, chat_id: int | str, text: str, parse_mode: Optional[str] = None) -> Dict[str, Any]:
        ...

    async def download_file(self, file_id: str) -> bytes:
        ...


class TelegramService:
    """Service for talking to the Telegram Bot API"""

    def __init__(self, bot_token: str, api_url: str = "https://api.telegram.org", client: Optional[httpx.AsyncClient] = None):
        self.bot_token = bot_token
        self.base_url = f"{api_url.rstrip('/')}/bot{bot_token}"
        self.file_url = f"{api_url.rstrip('/')}/file/bot{bot_token}"
        self._client = client or httpx.AsyncClient(timeout=30.0)

    async def close(self):
        await self._client.aclose()

    async def send_message(
        self,
        chat_id: int | str,
        text: str,
        parse_mode: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Sends a text message to a chat.

        Never raises: delivery problems are logged and reported in the result.

        Returns:
            {
                "success": True/False,
                "message_id": 123,
                "error": "Optional error message"
            }
        """
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode

        try:
            response = await self._client.post(f"{self.base_url}/sendMessage", json=payload)

            if response.status_code == 200 and response.json().get("ok"):
                result = response.json().get("result", {})
                logger.debug(f"Message sent to {chat_id}: id={result.get('message_id')}")
                return {
                    "success": True,
                    "message_id": result.get("message_id"),
                }

            logger.error(f"❌ Telegram API error: {response.status_code} - {response.text[:200]}")
            return {
                "success": False,
                "error": f"Telegram API error: {response.status_code}"
            }

        except httpx.TimeoutException:
            logger.error("Telegram API timeout")
            return {
                "success": False,
                "error": "Telegram API timeout"
            }
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error sending Telegram message: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e)
            }

    async def download_file(self, file_id: str) -> bytes:
        """
        Resolves a file id and fetches the whole file into memory.

        Raises:
            TransportFailure: If Telegram cannot resolve or serve the file
        """
        try:
            response = await self._client.get(f"{self.base_url}/getFile", params={"file_id": file_id})
            body = response.json() if response.status_code == 200 else {}
            file_path = body.get("result", {}).get("file_path") if body.get("ok") else None
            if not file_path:
                logger.error(f"getFile failed for {file_id}: {response.status_code}")
                raise TransportFailure()

            download = await self._client.get(f"{self.file_url}/{file_path}")
            if download.status_code != 200:
                logger.error(f"File download failed for {file_path}: {download.status_code}")
                raise TransportFailure()

            logger.info(f"📥 Downloaded {len(download.content)} bytes from Telegram")
            return download.content

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Network error fetching Telegram file: {e}")
            raise TransportFailure() from e

    async def set_webhook(self, url: str, secret_token: Optional[str] = None) -> bool:
        """
        Registers `url` as the bot's webhook.

        Never raises: returns False when Telegram is unreachable or refuses.
        """
        payload: Dict[str, Any] = {"url": url, "allowed_updates": ["message", "edited_message"]}
        if secret_token:
            payload["secret_token"] = secret_token

        try:
            response = await self._client.post(f"{self.base_url}/setWebhook", json=payload)
            ok = response.status_code == 200 and bool(response.json().get("ok", False))
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Webhook registration failed: {e}")
            return False

        if ok:
            logger.info(f"✅ Webhook registered: {url}")
        else:
            logger.error(f"❌ Webhook registration failed: {response.status_code} - {response.text[:200]}")
        return ok
