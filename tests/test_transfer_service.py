import asyncio
from datetime import date

import pytest
import pytest_asyncio

from inkshare.core.exceptions import DocumentNotFound, GatewayFailure, NotRegistered, RecipientNotFound
from inkshare.models.user import UserRecordUpdate
from inkshare.services.transfer_service import TransferService, TransferStatus


@pytest.fixture
def transfers(store, gateway, messenger):
    return TransferService(store, gateway, messenger, today=lambda: date(2026, 10, 19))


@pytest_asyncio.fixture
async def registered(store, gateway):
    await store.merge("1001", UserRecordUpdate(access_token="token-alice", handle="alice"))
    await store.merge("1002", UserRecordUpdate(access_token="token-bob", handle="bob"))
    gateway.client_for("token-alice").archives.update({
        "doc-1": b"PK\x03\x04first archive",
        "doc-2": b"PK\x03\x04second archive",
    })


@pytest.mark.asyncio
async def test_share_puts_archive_in_recipient_slot(transfers, store, messenger, registered):
    result = await transfers.share("1001", "alice", "doc-1", "@bob")

    assert result.status == TransferStatus.SENT
    assert result.recipient_handle == "bob"
    assert result.notified is True
    assert (await store.get("1002")).pending_file == b"PK\x03\x04first archive"
    assert messenger.texts_to(1002) == ["@alice has sent you a document. /accept or /refuse"]


@pytest.mark.asyncio
async def test_share_to_unknown_handle_touches_nothing(transfers, store, gateway, registered):
    with pytest.raises(RecipientNotFound):
        await transfers.share("1001", "alice", "doc-1", "@nobody")

    assert gateway.calls == []
    assert (await store.get("1002")).pending_file is None


@pytest.mark.asyncio
async def test_share_unknown_document(transfers, store, registered):
    with pytest.raises(DocumentNotFound):
        await transfers.share("1001", "alice", "missing", "bob")

    assert (await store.get("1002")).pending_file is None


@pytest.mark.asyncio
async def test_share_requires_registered_sender(transfers, store, registered):
    with pytest.raises(NotRegistered):
        await transfers.share("5555", "dave", "doc-1", "bob")


@pytest.mark.asyncio
async def test_latest_share_wins(transfers, gateway, registered):
    await transfers.share("1001", "alice", "doc-1", "bob")
    await transfers.share("1001", "alice", "doc-2", "bob")

    result = await transfers.accept("1002")

    assert result.status == TransferStatus.ACCEPTED
    assert gateway.client_for("token-bob").uploads == [
        ("Shared file Mon Oct 19 2026", b"PK\x03\x04second archive"),
    ]


@pytest.mark.asyncio
async def test_accept_uploads_exact_bytes_and_clears_slot(transfers, store, gateway, registered):
    payload = bytes(range(256)) * 4
    gateway.client_for("token-alice").archives["doc-3"] = payload

    await transfers.share("1001", "alice", "doc-3", "bob")
    result = await transfers.accept("1002")

    assert result.document_id == "uploaded-1"
    assert gateway.client_for("token-bob").uploads[0][1] == payload
    assert (await store.get("1002")).pending_file is None


@pytest.mark.asyncio
async def test_accept_without_pending_makes_no_gateway_call(transfers, gateway, registered):
    result = await transfers.accept("1002")

    assert result.status == TransferStatus.NOTHING_PENDING
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_failed_accept_keeps_pending_file(transfers, store, gateway, registered):
    await transfers.share("1001", "alice", "doc-1", "bob")
    gateway.client_for("token-bob").fail_uploads = True

    with pytest.raises(GatewayFailure):
        await transfers.accept("1002")

    assert (await store.get("1002")).pending_file == b"PK\x03\x04first archive"

    gateway.client_for("token-bob").fail_uploads = False
    result = await transfers.accept("1002")
    assert result.status == TransferStatus.ACCEPTED


@pytest.mark.asyncio
async def test_refuse_is_idempotent(transfers, store, registered):
    await transfers.share("1001", "alice", "doc-1", "bob")

    first = await transfers.refuse("1002")
    after_first = await store.get("1002")
    second = await transfers.refuse("1002")
    after_second = await store.get("1002")

    assert first.status == second.status == TransferStatus.REFUSED
    assert after_first == after_second
    assert after_second.pending_file is None
    assert after_second.access_token == "token-bob"


@pytest.mark.asyncio
async def test_refuse_does_not_create_records(transfers, store):
    await transfers.refuse("7777")

    assert await store.get("7777") is None


@pytest.mark.asyncio
async def test_lost_notification_keeps_transfer(transfers, store, messenger, registered):
    messenger.undeliverable.add("1002")

    result = await transfers.share("1001", "alice", "doc-1", "bob")

    assert result.status == TransferStatus.SENT
    assert result.notified is False
    assert (await store.get("1002")).pending_file == b"PK\x03\x04first archive"


@pytest.mark.asyncio
async def test_share_during_accept_upload_stays_pending(transfers, store, gateway, registered):
    await transfers.share("1001", "alice", "doc-1", "bob")

    bob = gateway.client_for("token-bob")
    upload_started = asyncio.Event()
    release_upload = asyncio.Event()
    original_upload = bob.upload

    async def slow_upload(name, payload):
        upload_started.set()
        await release_upload.wait()
        return await original_upload(name, payload)

    bob.upload = slow_upload

    accepting = asyncio.create_task(transfers.accept("1002"))
    await upload_started.wait()
    await transfers.share("1001", "alice", "doc-2", "bob")
    release_upload.set()
    result = await accepting

    assert result.status == TransferStatus.ACCEPTED
    assert bob.uploads[0][1] == b"PK\x03\x04first archive"
    assert (await store.get("1002")).pending_file == b"PK\x03\x04second archive"
