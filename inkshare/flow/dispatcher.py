"""
inkshare/flow/dispatcher.py

Purpose: Central interaction dispatcher

- Receives normalized interactions from the webhook
- Applies the per-sender rate limit and the allow-list
- Routes commands and attachments to their handlers
- Converts every failure into a reply; nothing escapes to the caller
"""

from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from inkshare.core.exceptions import InkShareError, UnauthorizedSender
from inkshare.core.logging import get_logger, LogContext
from inkshare.db.store import CredentialStore
from inkshare.flow.commands import Command, parse_command
from inkshare.flow.context import HandlerContext, HandlerResponse, Reply
from inkshare.flow.handlers.register import handle_register
from inkshare.flow.handlers.search import handle_search
from inkshare.flow.handlers.transfer import handle_accept, handle_refuse, handle_share
from inkshare.flow.handlers.upload import handle_upload
from inkshare.flow.handlers.welcome import handle_help, handle_start
from inkshare.schemas.telegram import Interaction
from inkshare.services.identity_service import session_key_of
from inkshare.services.ratelimit_service import RateLimiter
from inkshare.services.remarkable_service import DocumentGateway
from inkshare.services.telegram_service import Messenger
from inkshare.services.transfer_service import TransferService
from inkshare.utils.constants import (
    GENERIC_FAILURE_MESSAGE,
    RATE_LIMITED_MESSAGE,
    UNKNOWN_COMMAND_MESSAGE,
)

logger = get_logger(__name__)

Handler = Callable[[HandlerContext], Awaitable[HandlerResponse]]

COMMAND_HANDLERS: Dict[Command, Handler] = {
    Command.START: handle_start,
    Command.HELP: handle_help,
    Command.REGISTER: handle_register,
    Command.SEARCH: handle_search,
    Command.LIST: handle_search,
    Command.SHARE: handle_share,
    Command.ACCEPT: handle_accept,
    Command.REFUSE: handle_refuse,
}


class Dispatcher:
    """
    Owns every collaborator an interaction may touch.
    Built once at startup; `dispatch` may run concurrently for many interactions.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        gateway: DocumentGateway,
        messenger: Messenger,
        whitelisted_handles: Iterable[str],
        rate_limiter: RateLimiter,
        transfers: Optional[TransferService] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.messenger = messenger
        self.whitelisted_handles = frozenset(h.lstrip("@") for h in whitelisted_handles)
        self.rate_limiter = rate_limiter
        self.transfers = transfers or TransferService(store, gateway, messenger)

    def is_authorized(self, interaction: Interaction) -> bool:
        return bool(interaction.sender_handle) and interaction.sender_handle in self.whitelisted_handles

    async def dispatch(self, interaction: Interaction) -> Dict[str, Any]:
        """
        Main entry point for one inbound interaction.

        Returns:
            Status dict describing what happened (for logging and tests)
        """
        rate_key = str(interaction.sender_id or interaction.chat_id or "anonymous")
        if not self.rate_limiter.hit(rate_key).allowed:
            await self._send(interaction.chat_id, [Reply(RATE_LIMITED_MESSAGE)])
            return {"status": "rate_limited"}

        try:
            session_key = session_key_of(interaction)

            if not self.is_authorized(interaction):
                logger.info(f"🚫 Rejected @{interaction.sender_handle} (not whitelisted)")
                raise UnauthorizedSender()

            with LogContext(session_key=session_key, handle=interaction.sender_handle):
                return await self._route(interaction, session_key)

        except InkShareError as e:
            logger.info(f"Interaction {interaction.update_id} ended with {e.code}")
            await self._send(interaction.chat_id, [Reply(e.message)])
            return {"status": "failed", "code": e.code}

        except Exception as e:
            logger.error(f"❌ Dispatcher error: {e}", exc_info=True)
            await self._send(interaction.chat_id, [Reply(GENERIC_FAILURE_MESSAGE)])
            return {"status": "error", "error": str(e)}

    async def _route(self, interaction: Interaction, session_key: str) -> Dict[str, Any]:
        ctx = HandlerContext(
            interaction=interaction,
            session_key=session_key,
            store=self.store,
            gateway=self.gateway,
            messenger=self.messenger,
            transfers=self.transfers,
        )

        if interaction.attachment is not None:
            logger.info("📎 Attachment received")
            await self._send(ctx.chat_id, await handle_upload(ctx))
            return {"status": "success", "command": "upload"}

        parsed = parse_command(interaction.text)
        if parsed is None:
            logger.debug("Ignoring plain text message")
            return {"status": "ignored"}

        handler = COMMAND_HANDLERS.get(parsed.command) if parsed.command else None
        if handler is None:
            logger.info(f"Unknown command /{parsed.name}")
            await self._send(ctx.chat_id, [Reply(UNKNOWN_COMMAND_MESSAGE)])
            return {"status": "ignored", "command": parsed.name}

        ctx.args = parsed.args
        with LogContext(session_key=session_key, command=parsed.name):
            logger.info(f"🚦 Routing /{parsed.name} ({len(parsed.args)} args)")
            await self._send(ctx.chat_id, await handler(ctx))
        return {"status": "success", "command": parsed.name}

    async def _send(self, chat_id, response: HandlerResponse):
        """
        Sends handler output back to the chat.
        """
        if chat_id is None or response is None:
            return

        replies: List[Reply] = response if isinstance(response, list) else [response]
        for reply in replies:
            result = await self.messenger.send_message(chat_id, reply.text, reply.parse_mode)
            if not result.get("success"):
                logger.error(f"❌ Failed to reply to {chat_id}: {result.get('error')}")
