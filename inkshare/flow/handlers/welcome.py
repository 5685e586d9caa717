"""
inkshare/flow/handlers/welcome.py

Handles: /start and /help

- Greets new users
- Lists the available commands
"""

from typing import List

from inkshare.flow.context import HandlerContext, Reply
from inkshare.utils.constants import HELP_LINES, WELCOME_MESSAGE


def help_replies() -> List[Reply]:
    return [Reply(line) for line in HELP_LINES]


async def handle_start(ctx: HandlerContext) -> List[Reply]:
    return [Reply(WELCOME_MESSAGE), *help_replies()]


async def handle_help(ctx: HandlerContext) -> List[Reply]:
    return help_replies()
