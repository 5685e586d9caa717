"""
inkshare/flow/handlers/upload.py

Handles: PDF attachments

- Rejects anything that is not application/pdf
- Buffers the file from Telegram, then uploads it to the sender's account
"""

from inkshare.core.exceptions import UnsupportedAttachmentType
from inkshare.core.logging import get_logger
from inkshare.flow.context import HandlerContext, Reply
from inkshare.services.account_service import open_document_client
from inkshare.utils.constants import DEFAULT_UPLOAD_NAME, UPLOAD_DONE_MESSAGE
from inkshare.utils.validation_utils import is_pdf_mime_type

logger = get_logger(__name__)


async def handle_upload(ctx: HandlerContext) -> Reply:
    """
    Relays an attached PDF to the sender's reMarkable.

    Raises:
        UnsupportedAttachmentType: For non-PDF attachments
        NotRegistered: If the sender has no token
        TransportFailure: If Telegram cannot serve the file
    """
    attachment = ctx.interaction.attachment
    if attachment is None or not is_pdf_mime_type(attachment.mime_type):
        raise UnsupportedAttachmentType()

    client = await open_document_client(ctx.store, ctx.gateway, ctx.session_key)
    pdf_bytes = await ctx.messenger.download_file(attachment.file_id)
    logger.info(f"Relaying {attachment.file_name or 'unnamed'} ({len(pdf_bytes)} bytes)")

    document_id = await client.upload(attachment.file_name or DEFAULT_UPLOAD_NAME, pdf_bytes)
    return Reply(UPLOAD_DONE_MESSAGE.format(document_id=document_id), parse_mode="Markdown")
