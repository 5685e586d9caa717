"""
inkshare/utils/archive_utils.py

Purpose: reMarkable document archive helpers

- Wraps a PDF into the zip layout the cloud expects
- Re-keys an archive downloaded from another account to a new document id
"""

import io
import json
import zipfile
from typing import Optional

PDF_CONTENT_METADATA = {
    "extraMetadata": {},
    "fileType": "pdf",
    "lastOpenedPage": 0,
    "lineHeight": -1,
    "margins": 180,
    "pageCount": 0,
    "textScale": 1,
    "transform": {},
}


def is_document_archive(payload: bytes) -> bool:
    """True when the payload is a zip file rather than a bare PDF."""
    return zipfile.is_zipfile(io.BytesIO(payload))


def _archive_document_id(archive: zipfile.ZipFile) -> Optional[str]:
    for name in archive.namelist():
        if name.endswith(".content") and "/" not in name:
            return name[: -len(".content")]
    return None


def wrap_pdf(document_id: str, pdf_bytes: bytes) -> bytes:
    """
    Builds `<id>.content`, `<id>.pagedata` and `<id>.pdf` into a zip.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(f"{document_id}.content", json.dumps(PDF_CONTENT_METADATA))
        archive.writestr(f"{document_id}.pagedata", "")
        archive.writestr(f"{document_id}.pdf", pdf_bytes)
    return buffer.getvalue()


def rekey_archive(document_id: str, archive_bytes: bytes) -> bytes:
    """
    Copies an archive, renaming every entry prefixed with the old document id.
    Archives without a `.content` entry are copied unchanged.
    """
    source = zipfile.ZipFile(io.BytesIO(archive_bytes))
    old_id = _archive_document_id(source)

    buffer = io.BytesIO()
    with source, zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            name = info.filename
            if old_id and name.startswith(old_id):
                name = document_id + name[len(old_id):]
            target.writestr(name, source.read(info))
    return buffer.getvalue()


def build_document_archive(document_id: str, payload: bytes) -> bytes:
    """Returns the upload archive for `payload`, whichever form it arrived in."""
    if is_document_archive(payload):
        return rekey_archive(document_id, payload)
    return wrap_pdf(document_id, payload)
