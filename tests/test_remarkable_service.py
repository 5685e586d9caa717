import io
import json
import zipfile

import httpx
import pytest

from inkshare.core.exceptions import DocumentNotFound, GatewayFailure, InvalidPairingCode
from inkshare.services.remarkable_service import RemarkableGateway

AUTH = "https://auth.test"
MANAGER = "https://manager.test"
STORAGE = "https://storage.test"


class FakeCloud:
    """Minimal stand-in for the reMarkable HTTP API."""

    def __init__(self):
        self.requests = []
        self.blobs = {"https://blobs.test/doc-1": b"PK\x03\x04zip"}
        self.uploaded = {}
        self.metadata = []
        self.fail_listing = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        path = request.url.path

        if path == "/token/json/2/device/new":
            body = json.loads(request.content)
            if body["code"] != "abcdefgh":
                return httpx.Response(400, text="invalid code")
            assert body["deviceDesc"] == "desktop-linux"
            return httpx.Response(200, text="device-token")

        if path == "/token/json/2/user/new":
            if request.headers.get("Authorization") != "Bearer device-token":
                return httpx.Response(401)
            return httpx.Response(200, text="user-token")

        if path == "/service/json/1/document-storage":
            return httpx.Response(200, json={"Status": "OK", "Host": "storage.test"})

        if path == "/document-storage/json/2/docs":
            assert request.headers["Authorization"] == "Bearer user-token"
            if self.fail_listing:
                return httpx.Response(500)
            doc = request.url.params.get("doc")
            if doc == "doc-1":
                return httpx.Response(200, json=[{
                    "ID": "doc-1", "VissibleName": "Paper", "Type": "DocumentType",
                    "BlobURLGet": "https://blobs.test/doc-1", "Success": True,
                }])
            if doc:
                return httpx.Response(200, json=[{"ID": doc, "Success": False, "Message": "not found"}])
            return httpx.Response(200, json=[
                {"ID": "doc-1", "VissibleName": "Paper", "Type": "DocumentType", "BlobURLGet": "https://blobs.test/doc-1"},
                {"ID": "dir-1", "VissibleName": "Folder", "Type": "CollectionType"},
            ])

        if path == "/document-storage/json/2/upload/request":
            slot = json.loads(request.content)[0]
            return httpx.Response(200, json=[{
                "ID": slot["ID"], "Success": True, "BlobURLPut": f"https://blobs.test/put/{slot['ID']}",
            }])

        if url.startswith("https://blobs.test/put/"):
            self.uploaded[url.rsplit("/", 1)[-1]] = request.content
            return httpx.Response(200)

        if path == "/document-storage/json/2/upload/update-status":
            self.metadata.extend(json.loads(request.content))
            return httpx.Response(200, json=[{"ID": m["ID"], "Success": True} for m in json.loads(request.content)])

        if url in self.blobs:
            return httpx.Response(200, content=self.blobs[url])

        return httpx.Response(404)


@pytest.fixture
def cloud():
    return FakeCloud()


@pytest.fixture
def remarkable(cloud):
    http = httpx.AsyncClient(transport=httpx.MockTransport(cloud.handler))
    return RemarkableGateway(auth_url=AUTH, service_manager_url=MANAGER, http=http)


@pytest.mark.asyncio
async def test_pair_returns_device_token(remarkable):
    assert await remarkable.pair("abcdefgh") == "device-token"


@pytest.mark.asyncio
async def test_pair_rejects_bad_code(remarkable):
    with pytest.raises(InvalidPairingCode):
        await remarkable.pair("nope")


@pytest.mark.asyncio
async def test_with_token_refreshes_and_discovers_storage(remarkable):
    client = await remarkable.with_token("device-token")

    assert client.storage_url == STORAGE


@pytest.mark.asyncio
async def test_refused_device_token(remarkable):
    with pytest.raises(GatewayFailure):
        await remarkable.with_token("revoked")


@pytest.mark.asyncio
async def test_list_items(remarkable):
    client = await remarkable.with_token("device-token")

    items = await client.list_items()

    assert [(i.id, i.visible_name, i.kind) for i in items] == [
        ("doc-1", "Paper", "DocumentType"),
        ("dir-1", "Folder", "CollectionType"),
    ]
    assert items[0].download_url == "https://blobs.test/doc-1"
    assert items[1].download_url is None


@pytest.mark.asyncio
async def test_listing_failure_is_a_gateway_failure(remarkable, cloud):
    client = await remarkable.with_token("device-token")
    cloud.fail_listing = True

    with pytest.raises(GatewayFailure):
        await client.list_items()


@pytest.mark.asyncio
async def test_download_archive(remarkable):
    client = await remarkable.with_token("device-token")

    assert await client.download_archive("doc-1") == b"PK\x03\x04zip"


@pytest.mark.asyncio
async def test_download_unknown_document(remarkable):
    client = await remarkable.with_token("device-token")

    with pytest.raises(DocumentNotFound):
        await client.download_archive("missing")


@pytest.mark.asyncio
async def test_upload_pdf(remarkable, cloud):
    client = await remarkable.with_token("device-token")

    document_id = await client.upload("paper.pdf", b"%PDF-1.7")

    with zipfile.ZipFile(io.BytesIO(cloud.uploaded[document_id])) as archive:
        assert archive.read(f"{document_id}.pdf") == b"%PDF-1.7"
    assert cloud.metadata[0]["ID"] == document_id
    assert cloud.metadata[0]["VissibleName"] == "paper.pdf"
    assert cloud.metadata[0]["Type"] == "DocumentType"
