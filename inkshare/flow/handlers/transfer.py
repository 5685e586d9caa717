"""
inkshare/flow/handlers/transfer.py

Handles: /share FILE_ID USERNAME, /accept, /refuse

- Thin rendering layer over TransferService
"""

from inkshare.core.exceptions import MalformedCommandArgs
from inkshare.flow.context import HandlerContext, Reply
from inkshare.services.transfer_service import TransferStatus
from inkshare.utils.constants import (
    ACCEPT_DONE_MESSAGE,
    ACCEPT_EMPTY_MESSAGE,
    REFUSE_DONE_MESSAGE,
    SHARE_SENT_MESSAGE,
    SHARE_USAGE,
    WORKING_MESSAGE,
)


async def handle_share(ctx: HandlerContext) -> Reply:
    if len(ctx.args) != 2:
        raise MalformedCommandArgs(SHARE_USAGE)

    document_id, recipient_handle = ctx.args
    await ctx.reply(WORKING_MESSAGE)
    result = await ctx.transfers.share(
        ctx.session_key,
        ctx.sender_handle,
        document_id,
        recipient_handle,
    )
    return Reply(SHARE_SENT_MESSAGE.format(handle=result.recipient_handle))


async def handle_accept(ctx: HandlerContext) -> Reply:
    await ctx.reply(WORKING_MESSAGE)
    result = await ctx.transfers.accept(ctx.session_key)
    if result.status == TransferStatus.NOTHING_PENDING:
        return Reply(ACCEPT_EMPTY_MESSAGE)
    return Reply(ACCEPT_DONE_MESSAGE.format(document_id=result.document_id), parse_mode="Markdown")


async def handle_refuse(ctx: HandlerContext) -> Reply:
    await ctx.transfers.refuse(ctx.session_key)
    return Reply(REFUSE_DONE_MESSAGE)
