"""
inkshare/services/transfer_service.py

Purpose: One-shot file handoff between two users

- share: downloads the sender's document into the recipient's pending slot
- accept: uploads the pending file to the recipient's account, then clears it
- refuse: clears the pending slot

The pending slot on the recipient's record *is* the protocol state:
present means "sent", absent means idle. A new share overwrites an older one.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Optional

from inkshare.core.exceptions import RecipientNotFound
from inkshare.core.logging import get_logger, LogContext
from inkshare.db.store import CredentialStore
from inkshare.models.user import UserRecordUpdate
from inkshare.services.account_service import open_document_client
from inkshare.services.identity_service import resolve_handle
from inkshare.services.remarkable_service import DocumentGateway
from inkshare.services.telegram_service import Messenger
from inkshare.utils.constants import SHARE_NOTIFICATION
from inkshare.utils.time_utils import shared_file_name
from inkshare.utils.validation_utils import strip_handle_prefix

logger = get_logger(__name__)


class TransferStatus(str, Enum):
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REFUSED = "REFUSED"
    NOTHING_PENDING = "NOTHING_PENDING"


@dataclass(frozen=True)
class TransferResult:
    status: TransferStatus
    recipient_handle: Optional[str] = None
    document_id: Optional[str] = None
    notified: bool = False


class TransferService:
    def __init__(
        self,
        store: CredentialStore,
        gateway: DocumentGateway,
        messenger: Messenger,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.gateway = gateway
        self.messenger = messenger
        self._today = today

    async def share(
        self,
        sender_key: str,
        sender_handle: Optional[str],
        document_id: str,
        recipient_handle: str,
    ) -> TransferResult:
        """
        Puts a copy of `document_id` into the recipient's pending slot.

        Raises:
            RecipientNotFound: If no registered user carries `recipient_handle`
            NotRegistered: If the sender has no token
            DocumentNotFound / GatewayFailure: If the download fails
        """
        handle = strip_handle_prefix(recipient_handle)

        with LogContext(session_key=sender_key, command="share"):
            recipient_key = await resolve_handle(self.store, handle)
            if recipient_key is None:
                logger.info(f"Share target @{handle} is not registered")
                raise RecipientNotFound()

            client = await open_document_client(self.store, self.gateway, sender_key)
            archive = await client.download_archive(document_id)

            await self.store.merge(recipient_key, UserRecordUpdate(pending_file=archive))
            logger.info(f"Document {document_id} pending for @{handle} ({len(archive)} bytes)")

            notified = await self._notify(recipient_key, sender_handle)
            return TransferResult(
                status=TransferStatus.SENT,
                recipient_handle=handle,
                notified=notified,
            )

    async def _notify(self, recipient_key: str, sender_handle: Optional[str]) -> bool:
        """Best-effort ping; the pending file stays put whatever happens here."""
        try:
            result = await self.messenger.send_message(
                recipient_key,
                SHARE_NOTIFICATION.format(sender=sender_handle or "someone"),
            )
        except Exception as e:
            logger.warning(f"Transfer notification to {recipient_key} failed: {e}", exc_info=True)
            return False

        if not result.get("success"):
            logger.warning(f"Transfer notification to {recipient_key} not delivered: {result.get('error')}")
            return False
        return True

    async def accept(self, recipient_key: str) -> TransferResult:
        """
        Uploads the pending file to the recipient's own account.

        The slot is cleared only after the upload succeeded, so a failed
        accept can be retried. A file shared while the upload runs stays
        pending.
        """
        with LogContext(session_key=recipient_key, command="accept"):
            record = await self.store.get(recipient_key)
            if record is None or not record.has_pending_file:
                return TransferResult(status=TransferStatus.NOTHING_PENDING)

            client = await open_document_client(self.store, self.gateway, recipient_key)
            document_id = await client.upload(shared_file_name(self._today()), record.pending_file)

            if not await self.store.clear_pending_if(recipient_key, record.pending_file):
                logger.info("A newer document arrived during the upload; keeping it pending")
            logger.info(f"Pending document accepted as {document_id}")
            return TransferResult(status=TransferStatus.ACCEPTED, document_id=document_id)

    async def refuse(self, recipient_key: str) -> TransferResult:
        """Clears the pending slot. Safe to call when nothing is pending."""
        with LogContext(session_key=recipient_key, command="refuse"):
            # no record means unregistered; merging would create one
            if await self.store.get(recipient_key) is not None:
                await self.store.merge(recipient_key, UserRecordUpdate(pending_file=None))
            logger.info("Pending document refused")
            return TransferResult(status=TransferStatus.REFUSED)
