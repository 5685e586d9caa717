"""
inkshare/flow/commands.py

Purpose: Command parsing

- "/name arg1 arg2" -> ParsedCommand(name, args)
- Accepts the "/name@botname" form Telegram uses in groups
- Single source of truth for supported command names
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Command(str, Enum):
    START = "start"
    HELP = "help"
    REGISTER = "register"
    SEARCH = "search"
    LIST = "list"
    SHARE = "share"
    ACCEPT = "accept"
    REFUSE = "refuse"


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    args: List[str] = field(default_factory=list)

    @property
    def command(self) -> Optional[Command]:
        try:
            return Command(self.name)
        except ValueError:
            return None


def parse_command(text: Optional[str]) -> Optional[ParsedCommand]:
    """
    Splits command text on whitespace.

    Returns None when `text` is not a command at all.

    Example:
        "/share 3f2a @bob" -> ParsedCommand("share", ["3f2a", "@bob"])
    """
    if not text or not text.startswith("/"):
        return None

    tokens = text.split()
    name = tokens[0][1:].split("@", 1)[0].lower()
    if not name:
        return None
    return ParsedCommand(name=name, args=tokens[1:])
