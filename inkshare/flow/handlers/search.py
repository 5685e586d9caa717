"""
inkshare/flow/handlers/search.py

Handles: /search [TERM] and /list

- Fetches the sender's full listing
- Filters by normalized substring match on the visible name
- Renders at most SEARCH_MAX_RESULTS items, one message each
"""

import html
from typing import Iterable, List, Optional

from inkshare.core.exceptions import MalformedCommandArgs
from inkshare.flow.context import HandlerContext, Reply
from inkshare.schemas.remarkable import DocumentItem
from inkshare.services.account_service import open_document_client
from inkshare.utils.constants import SEARCH_EMPTY_MESSAGE, SEARCH_MAX_RESULTS, SEARCH_USAGE
from inkshare.utils.validation_utils import normalize_search_text


def filter_items(
    items: Iterable[DocumentItem],
    term: Optional[str] = None,
    limit: int = SEARCH_MAX_RESULTS,
) -> List[DocumentItem]:
    """
    Keeps items whose normalized name contains the normalized term,
    in listing order. No term keeps everything.
    """
    wanted = normalize_search_text(term) if term else ""
    matches = [item for item in items if wanted in normalize_search_text(item.visible_name)]
    return matches[:limit]


def render_item(item: DocumentItem) -> Reply:
    lines = [
        f"ID: <code>{html.escape(item.id)}</code>",
        f"Name: {html.escape(item.visible_name)}",
        f"Type: {html.escape(item.kind)}",
    ]
    if item.download_url:
        lines.append(f'<a href="{html.escape(item.download_url, quote=True)}">Download</a>')
    return Reply("\n".join(lines), parse_mode="HTML")


async def handle_search(ctx: HandlerContext) -> List[Reply]:
    if len(ctx.args) > 1:
        raise MalformedCommandArgs(SEARCH_USAGE)

    term = ctx.args[0] if ctx.args else None
    client = await open_document_client(ctx.store, ctx.gateway, ctx.session_key)
    results = filter_items(await client.list_items(), term)

    if not results:
        return [Reply(SEARCH_EMPTY_MESSAGE)]
    return [render_item(item) for item in results]
