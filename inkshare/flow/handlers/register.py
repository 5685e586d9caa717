"""
inkshare/flow/handlers/register.py

Handles: /register CODE

- Validates that exactly one pairing code was given
- Pairs the sender's reMarkable and stores token + handle
"""

from inkshare.core.exceptions import MalformedCommandArgs
from inkshare.core.logging import get_logger
from inkshare.flow.context import HandlerContext, Reply
from inkshare.services.account_service import register_account
from inkshare.utils.constants import REGISTER_DONE_MESSAGE, REGISTER_USAGE, WORKING_MESSAGE

logger = get_logger(__name__)


async def handle_register(ctx: HandlerContext) -> Reply:
    """
    Pairs a reMarkable using the one-time code from my.remarkable.com.

    Raises:
        MalformedCommandArgs: Unless exactly one argument is given
        InvalidPairingCode: If the cloud rejects the code
    """
    if len(ctx.args) != 1:
        raise MalformedCommandArgs(REGISTER_USAGE)

    await ctx.reply(WORKING_MESSAGE)
    await register_account(
        ctx.store,
        ctx.gateway,
        ctx.session_key,
        code=ctx.args[0],
        handle=ctx.sender_handle,
    )
    return Reply(REGISTER_DONE_MESSAGE)
