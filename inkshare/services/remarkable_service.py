"""
inkshare/services/remarkable_service.py

Purpose: reMarkable cloud integration

- Exchanges a pairing code for a durable device token
- Refreshes a user token before every operation
- Lists, uploads and downloads documents
- No retries: every failure surfaces as a single InkShare error
"""

import uuid
import httpx
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from inkshare.core.exceptions import DocumentNotFound, GatewayFailure, InvalidPairingCode
from inkshare.core.logging import get_logger
from inkshare.schemas.remarkable import DocumentItem, UploadSlot
from inkshare.utils.archive_utils import build_document_archive

logger = get_logger(__name__)

DEVICE_TOKEN_PATH = "/token/json/2/device/new"
USER_TOKEN_PATH = "/token/json/2/user/new"
STORAGE_DISCOVERY_PATH = "/service/json/1/document-storage"
STORAGE_DISCOVERY_PARAMS = {
    "environment": "production",
    "group": "auth0|5a68dc51cb30df3877a1d7c4",
    "apiVer": "2",
}
DOCS_PATH = "/document-storage/json/2/docs"
UPLOAD_REQUEST_PATH = "/document-storage/json/2/upload/request"
UPLOAD_STATUS_PATH = "/document-storage/json/2/upload/update-status"


class DocumentClient(Protocol):
    """Operations available once a user token has been obtained."""

    async def list_items(self) -> List[DocumentItem]:
        ...

    async def upload(self, name: str, payload: bytes) -> str:
        ...

    async def download_archive(self, document_id: str) -> bytes:
        ...


class DocumentGateway(Protocol):
    """Entry point to the document cloud."""

    async def pair(self, code: str) -> str:
        ...

    async def with_token(self, token: str) -> DocumentClient:
        ...


class RemarkableClient:
    """
    Authenticated session against the document-storage host.
    """

    def __init__(self, http: httpx.AsyncClient, storage_url: str, user_token: str):
        self._http = http
        self.storage_url = storage_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {user_token}"}

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._http.request(
                method, f"{self.storage_url}{path}", headers=self._headers, **kwargs
            )
        except httpx.HTTPError as e:
            logger.error(f"Network error calling reMarkable {path}: {e}")
            raise GatewayFailure() from e

        if response.status_code != 200:
            logger.error(f"reMarkable {method} {path} failed: {response.status_code} - {response.text[:200]}")
            raise GatewayFailure()
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"reMarkable {method} {path} returned invalid JSON")
            raise GatewayFailure() from e

    async def list_items(self) -> List[DocumentItem]:
        """Fetches the full account listing."""
        items = await self._call("GET", DOCS_PATH, params={"withBlob": "true"})
        return [DocumentItem.model_validate(item) for item in items or []]

    async def download_archive(self, document_id: str) -> bytes:
        """
        Fetches the zip archive of one document.

        Raises:
            DocumentNotFound: If the id does not resolve in this account
            GatewayFailure: On any other failure
        """
        items = await self._call("GET", DOCS_PATH, params={"doc": document_id, "withBlob": "true"})
        matches = [DocumentItem.model_validate(item) for item in items or []]
        if not matches or not matches[0].success or not matches[0].download_url:
            logger.info(f"Document {document_id} not found")
            raise DocumentNotFound()

        try:
            blob = await self._http.get(matches[0].download_url)
        except httpx.HTTPError as e:
            logger.error(f"Network error downloading {document_id}: {e}")
            raise GatewayFailure() from e

        if blob.status_code != 200:
            logger.error(f"Blob download for {document_id} failed: {blob.status_code}")
            raise GatewayFailure()
        return blob.content

    async def upload(self, name: str, payload: bytes) -> str:
        """
        Uploads a PDF (or a document archive) and returns the new document id.

        Not idempotent: calling twice creates two documents.
        """
        document_id = str(uuid.uuid4())

        slots = await self._call(
            "PUT",
            UPLOAD_REQUEST_PATH,
            json=[{"ID": document_id, "Type": "DocumentType", "Version": 1}],
        )
        slot = UploadSlot.model_validate(slots[0]) if slots else None
        if slot is None or not slot.success or not slot.upload_url:
            logger.error(f"Upload slot refused for {document_id}: {slot.message if slot else 'empty response'}")
            raise GatewayFailure()

        archive = build_document_archive(document_id, payload)
        try:
            put = await self._http.put(slot.upload_url, content=archive)
        except httpx.HTTPError as e:
            logger.error(f"Network error uploading {document_id}: {e}")
            raise GatewayFailure() from e
        if put.status_code != 200:
            logger.error(f"Blob upload for {document_id} failed: {put.status_code}")
            raise GatewayFailure()

        statuses = await self._call(
            "PUT",
            UPLOAD_STATUS_PATH,
            json=[{
                "ID": document_id,
                "Parent": "",
                "VissibleName": name,
                "Type": "DocumentType",
                "Version": 1,
                "ModifiedClient": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
                "Bookmarked": False,
                "CurrentPage": 0,
            }],
        )
        if not statuses or not statuses[0].get("Success", False):
            logger.error(f"Metadata commit for {document_id} failed")
            raise GatewayFailure()

        logger.info(f"📤 Uploaded '{name}' as {document_id} ({len(payload)} bytes)")
        return document_id


class RemarkableGateway:
    """
    Adapter to the reMarkable cloud.
    One instance (and one HTTP connection pool) is shared by all interactions.
    """

    def __init__(
        self,
        auth_url: str,
        service_manager_url: str,
        device_desc: str = "desktop-linux",
        timeout: Optional[float] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.auth_url = auth_url.rstrip("/")
        self.service_manager_url = service_manager_url.rstrip("/")
        self.device_desc = device_desc
        self._http = http or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def close(self):
        await self._http.aclose()

    async def pair(self, code: str) -> str:
        """
        Exchanges a one-time pairing code for a device token.

        Raises:
            InvalidPairingCode: If the code is rejected
            GatewayFailure: If the cloud cannot be reached
        """
        body = {"code": code, "deviceDesc": self.device_desc, "deviceID": str(uuid.uuid4())}
        try:
            response = await self._http.post(f"{self.auth_url}{DEVICE_TOKEN_PATH}", json=body)
        except httpx.HTTPError as e:
            logger.error(f"Network error during pairing: {e}")
            raise GatewayFailure() from e

        token = response.text.strip()
        if response.status_code != 200 or not token:
            logger.warning(f"Pairing code rejected: {response.status_code}")
            raise InvalidPairingCode()
        return token

    async def _refresh_user_token(self, device_token: str) -> str:
        try:
            response = await self._http.post(
                f"{self.auth_url}{USER_TOKEN_PATH}",
                headers={"Authorization": f"Bearer {device_token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Network error refreshing token: {e}")
            raise GatewayFailure() from e

        if response.status_code != 200 or not response.text.strip():
            logger.error(f"Token refresh failed: {response.status_code}")
            raise GatewayFailure("Your reMarkable token was refused. Try to /register again")
        return response.text.strip()

    async def _discover_storage_url(self, user_token: str) -> str:
        try:
            response = await self._http.get(
                f"{self.service_manager_url}{STORAGE_DISCOVERY_PATH}",
                params=STORAGE_DISCOVERY_PARAMS,
                headers={"Authorization": f"Bearer {user_token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Network error discovering storage host: {e}")
            raise GatewayFailure() from e

        try:
            data: Dict[str, Any] = response.json() if response.status_code == 200 else {}
        except ValueError:
            data = {}
        host = data.get("Host")
        if data.get("Status") != "OK" or not host:
            logger.error(f"Storage discovery failed: {response.status_code}")
            raise GatewayFailure()
        return host if host.startswith("http") else f"https://{host}"

    async def with_token(self, token: str) -> RemarkableClient:
        """Refreshes the user token and returns a client bound to it."""
        user_token = await self._refresh_user_token(token)
        storage_url = await self._discover_storage_url(user_token)
        return RemarkableClient(self._http, storage_url, user_token)
