"""LangChain tool bindings for a FeverClient."""

import json

from langchain_core.tools import tool

from freshrss_sync.client import FeverClient
from freshrss_sync.errors import FreshRSSError
from freshrss_sync.models import Item

SUMMARY_LENGTH = 200

# Module-level client reference, set by the host application
_client: FeverClient | None = None


def set_client(client: FeverClient | None) -> None:
    """Set the client used by all tools."""
    global _client
    _client = client


def _get_client() -> FeverClient:
    """Get the client instance, raising if not set."""
    if _client is None:
        raise RuntimeError("Client not initialized. Call set_client() first.")
    return _client


def _item_to_dict(item: Item) -> dict:
    return {
        "id": item.id,
        "feed_id": item.feed_id,
        "title": item.title,
        "author": item.author,
        "url": item.url,
        "html": item.html[:SUMMARY_LENGTH],
        "created_at": item.created_datetime.isoformat(),
        "is_read": item.is_read,
        "is_saved": item.is_saved,
    }


def _items_result(items: list[Item]) -> str:
    return json.dumps({
        "items": [_item_to_dict(item) for item in items],
        "total": len(items),
    })


def _error(e: Exception) -> str:
    return json.dumps({
        "status": "error",
        "message": str(e),
    })


@tool
def get_unread_items() -> str:
    """Get every unread item on the server, oldest first."""
    client = _get_client()
    try:
        return _items_result(client.get_unreads())
    except FreshRSSError as e:
        return _error(e)


@tool
def get_saved_items() -> str:
    """Get every saved (starred) item on the server, oldest first."""
    client = _get_client()
    try:
        return _items_result(client.get_saved())
    except FreshRSSError as e:
        return _error(e)


@tool
def get_items_between(since: str, until: str = "") -> str:
    """Get items added to the server between two dates.

    Args:
        since: Start date, YYYY-MM-DD or ISO 8601.
        until: Optional end date, YYYY-MM-DD or ISO 8601. Defaults to now.
    """
    client = _get_client()
    try:
        return _items_result(client.get_items_from_dates(since, until or None))
    except FreshRSSError as e:
        return _error(e)


@tool
def mark_item(item_id: int, action: str) -> str:
    """Mark one item as read, saved or unsaved.

    Args:
        item_id: The id of the item to mark.
        action: One of "read", "saved" or "unsaved".
    """
    client = _get_client()
    try:
        client.set_mark(action, item_id)
    except FreshRSSError as e:
        return _error(e)

    return json.dumps({
        "status": "success",
        "item_id": item_id,
        "action": action,
    })
