"""
Register the Telegram webhook

Run this script to point Telegram at a deployed InkShare instance
and send a test message to an allow-listed chat.

Usage: python scripts/set_webhook.py https://example.com/api/v1/telegram/webhook [CHAT_ID]
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are built
load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))

from inkshare.core.config import settings
from inkshare.services.telegram_service import TelegramService


async def main(url: str, chat_id: str | None) -> bool:
    print("=" * 60)
    print("  Telegram Webhook Setup")
    print("=" * 60 + "\n")

    print(f"Bot token: {settings.BOT_TOKEN[:8]}...")
    print(f"Secret token: {'✅ Set' if settings.TELEGRAM_WEBHOOK_SECRET else '❌ Not set'}")
    print(f"Whitelisted: {', '.join(settings.whitelisted_handles)}\n")

    telegram = TelegramService(settings.BOT_TOKEN, api_url=settings.TELEGRAM_API_URL)
    try:
        ok = await telegram.set_webhook(url, settings.TELEGRAM_WEBHOOK_SECRET)
        print(f"Webhook registered: {'✅ Yes' if ok else '❌ No'}")

        if ok and chat_id:
            result = await telegram.send_message(chat_id, "🧪 InkShare webhook is configured. Send /help to start.")
            print(f"Test message sent: {'✅ Yes' if result['success'] else '❌ ' + result.get('error', '')}")
        return ok
    finally:
        await telegram.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    success = asyncio.run(main(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None))
    sys.exit(0 if success else 1)
