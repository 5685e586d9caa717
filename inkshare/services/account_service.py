"""
inkshare/services/account_service.py

Purpose: Account management

- Pairs a reMarkable and stores the device token with the sender's handle
- Opens an authenticated document client for a registered user
"""

from inkshare.core.exceptions import NotRegistered
from inkshare.core.logging import get_logger, LogContext
from inkshare.db.store import CredentialStore
from inkshare.models.user import UserRecord, UserRecordUpdate
from inkshare.services.remarkable_service import DocumentClient, DocumentGateway

logger = get_logger(__name__)


async def register_account(
    store: CredentialStore,
    gateway: DocumentGateway,
    session_key: str,
    code: str,
    handle: str | None,
) -> UserRecord:
    """
    Exchanges `code` for a device token and records it for `session_key`.

    Re-registering replaces the token and handle but keeps any pending file.

    Raises:
        InvalidPairingCode: If the cloud rejects the code
    """
    with LogContext(session_key=session_key):
        token = await gateway.pair(code)
        record = await store.merge(session_key, UserRecordUpdate(access_token=token, handle=handle))
        logger.info(f"Registered reMarkable for @{handle}")
        return record


async def open_document_client(
    store: CredentialStore,
    gateway: DocumentGateway,
    session_key: str,
) -> DocumentClient:
    """
    Returns a document client authenticated as `session_key`.

    Raises:
        NotRegistered: If the user has no record or no token
    """
    record = await store.get(session_key)
    if record is None or not record.access_token:
        raise NotRegistered()
    return await gateway.with_token(record.access_token)
