import itertools
import os

# Settings are built at import time; configure them before importing inkshare.
os.environ["BOT_TOKEN"] = "123456:test-token"
os.environ["WHITELISTED"] = "alice bob carol"
os.environ["STORE_BACKEND"] = "memory"
os.environ["ENVIRONMENT"] = "development"
os.environ.pop("TELEGRAM_WEBHOOK_URL", None)
os.environ.pop("TELEGRAM_WEBHOOK_SECRET", None)

import pytest

from inkshare.core.exceptions import DocumentNotFound, GatewayFailure, InvalidPairingCode, TransportFailure
from inkshare.db.store import MemoryCredentialStore
from inkshare.flow.dispatcher import Dispatcher
from inkshare.schemas.remarkable import DocumentItem
from inkshare.schemas.telegram import Attachment, Interaction
from inkshare.services.ratelimit_service import RateLimiter

_update_ids = itertools.count(1)

USER_IDS = {"alice": 1001, "bob": 1002, "carol": 1003, "mallory": 6666}


class FakeMessenger:
    def __init__(self):
        self.sent = []
        self.files = {}
        self.undeliverable = set()

    async def send_message(self, chat_id, text, parse_mode=None):
        if str(chat_id) in self.undeliverable:
            return {"success": False, "error": "Forbidden: bot was blocked by the user"}
        self.sent.append((str(chat_id), text, parse_mode))
        return {"success": True, "message_id": len(self.sent)}

    async def download_file(self, file_id):
        if file_id not in self.files:
            raise TransportFailure()
        return self.files[file_id]

    def texts_to(self, chat_id):
        return [text for chat, text, _ in self.sent if chat == str(chat_id)]


class FakeDocumentClient:
    def __init__(self, items=None, archives=None):
        self.items = list(items or [])
        self.archives = dict(archives or {})
        self.uploads = []
        self.fail_uploads = False

    async def list_items(self):
        return list(self.items)

    async def upload(self, name, payload):
        if self.fail_uploads:
            raise GatewayFailure()
        self.uploads.append((name, payload))
        return f"uploaded-{len(self.uploads)}"

    async def download_archive(self, document_id):
        if document_id not in self.archives:
            raise DocumentNotFound()
        return self.archives[document_id]


class FakeGateway:
    """Pairing code `code-<name>` yields token `token-<name>`."""

    def __init__(self):
        self.clients = {}
        self.calls = []

    def client_for(self, token):
        return self.clients.setdefault(token, FakeDocumentClient())

    async def pair(self, code):
        self.calls.append(("pair", code))
        if not code.startswith("code-"):
            raise InvalidPairingCode()
        return "token-" + code[len("code-"):]

    async def with_token(self, token):
        self.calls.append(("with_token", token))
        return self.client_for(token)


def make_interaction(text=None, sender="alice", attachment=None, sender_id=None, chat_id=None):
    user_id = sender_id if sender_id is not None else USER_IDS.get(sender, 9999)
    return Interaction(
        update_id=next(_update_ids),
        chat_id=chat_id if chat_id is not None else user_id,
        sender_id=user_id,
        sender_handle=sender,
        text=text,
        attachment=attachment,
    )


def pdf_attachment(file_id="file-1", name="notes.pdf", mime_type="application/pdf"):
    return Attachment(file_id=file_id, mime_type=mime_type, file_name=name)


def item(doc_id, name, kind="DocumentType", url=None):
    return DocumentItem(ID=doc_id, VissibleName=name, Type=kind, BlobURLGet=url)


@pytest.fixture
def store():
    return MemoryCredentialStore()


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def dispatcher(store, gateway, messenger):
    return Dispatcher(
        store=store,
        gateway=gateway,
        messenger=messenger,
        whitelisted_handles=["alice", "bob", "carol"],
        rate_limiter=RateLimiter(limit=1000, window_seconds=3),
    )
