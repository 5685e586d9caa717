"""
inkshare/flow/context.py

Purpose: Per-interaction handler context

- Carries the interaction, the resolved session key and parsed arguments
- Gives handlers access to the injected store, gateway and messenger
- Lets handlers send progress replies before their final response
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from inkshare.db.store import CredentialStore
from inkshare.schemas.telegram import Interaction
from inkshare.services.remarkable_service import DocumentGateway
from inkshare.services.telegram_service import Messenger
from inkshare.services.transfer_service import TransferService


@dataclass(frozen=True)
class Reply:
    text: str
    parse_mode: Optional[str] = None


HandlerResponse = Union[Reply, List[Reply], None]


@dataclass
class HandlerContext:
    interaction: Interaction
    session_key: str
    store: CredentialStore
    gateway: DocumentGateway
    messenger: Messenger
    transfers: TransferService
    args: List[str] = field(default_factory=list)

    @property
    def chat_id(self) -> Union[int, str]:
        if self.interaction.chat_id is not None:
            return self.interaction.chat_id
        return self.session_key

    @property
    def sender_handle(self) -> Optional[str]:
        return self.interaction.sender_handle

    async def reply(self, text: str, parse_mode: Optional[str] = None):
        return await self.messenger.send_message(self.chat_id, text, parse_mode)
