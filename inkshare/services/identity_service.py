"""
inkshare/services/identity_service.py

Purpose: Identity resolution

- Derives the credential-store key from an interaction's sender
- Resolves a public handle to the key of the user who registered it
"""

from typing import Optional

from inkshare.core.exceptions import UnrecognizedChannel
from inkshare.db.store import CredentialStore
from inkshare.schemas.telegram import Interaction
from inkshare.utils.validation_utils import strip_handle_prefix


def session_key_of(interaction: Interaction) -> str:
    """
    Returns the stable session key for the sender of `interaction`.

    Raises:
        UnrecognizedChannel: If the interaction has no sender
    """
    if interaction.sender_id is None:
        raise UnrecognizedChannel()
    return str(interaction.sender_id)


async def resolve_handle(store: CredentialStore, handle: str) -> Optional[str]:
    """
    Finds the session key whose record carries `handle` (exact, case-sensitive).

    If two users registered the same handle, the first key in sorted order wins.
    """
    wanted = strip_handle_prefix(handle)
    if not wanted:
        return None

    async for key in store.keys():
        record = await store.get(key)
        if record is not None and record.handle == wanted:
            return key
    return None
