"""Item synchronization over the keyed protocol.

Two retrieval strategies are supported: fetching a known list of ids in
batches, and walking forward from a date with a ``since_id`` cursor until
the server runs out of items.
"""

import logging

from freshrss_sync.auth import Session
from freshrss_sync.cursor import DEFAULT_DATE_FORMAT, DateInput, now_cursor, to_cursor
from freshrss_sync.errors import (
    APIError,
    ConfigurationError,
    ConsistencyError,
    UnsupportedOperationError,
    ValidationError,
)
from freshrss_sync.models import Item, ItemIdList, ItemsPage

logger = logging.getLogger(__name__)

# Server-side ceiling on items per response and ids per ``with_ids`` query
BATCH_SIZE = 50

MARK_ACTIONS = ("read", "saved", "unsaved")

_MARK_RESPONSE_FIELDS = {
    "read": "read_item_ids",
    "saved": "saved_item_ids",
    "unsaved": "saved_item_ids",
}


class SyncEngine:
    """Retrieves and marks items through an authenticated keyed-protocol session."""

    def __init__(self, session: Session):
        self.session = session

    # --- Retrieval by id ---

    def get_items_from_ids(self, ids: list[int]) -> list[Item]:
        """Fetch items by id, ``BATCH_SIZE`` ids per request.

        Args:
            ids: Item ids to fetch.

        Returns:
            The items sorted by ascending id.

        Raises:
            APIError: If the server does not return exactly one item per id.
        """
        if not ids:
            return []

        items: list[Item] = []
        for start in range(0, len(ids), BATCH_SIZE):
            batch = ids[start:start + BATCH_SIZE]
            response = self.session.call("items", {"with_ids": ",".join(str(i) for i in batch)})
            items.extend(ItemsPage.from_response(response).items)

        if len(items) != len(ids):
            raise APIError(
                f"API returned {len(items)} items but {len(ids)} were requested. "
                "Some items may not exist or may not be accessible."
            )

        items.sort(key=lambda item: item.id)
        return items

    # --- Retrieval by date range ---

    def get_items_from_dates(
        self,
        since: DateInput | None,
        until: DateInput | None = None,
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> list[Item]:
        """Fetch every item with an id between ``since`` and ``until``.

        The keyed protocol only offers a lower bound (``since_id``), so the
        upper bound is applied client-side while paging forward.

        Args:
            since: Start of the range; a date string, cursor, ``date`` or ``datetime``.
            until: End of the range (inclusive). Defaults to now.
            date_format: ``strptime`` format for date strings.

        Returns:
            The items sorted by ascending id, each id once.

        Raises:
            ConfigurationError: If ``since`` is missing.
            ValidationError: If a date is invalid or ``since`` is not before ``until``.
            ConsistencyError: If a duplicate id reaches the result.
        """
        if since is None:
            raise ConfigurationError("The 'since' parameter is required")

        since_id = to_cursor(since, date_format)
        until_id = now_cursor() if until is None else to_cursor(until, date_format)
        if not since_id < until_id:
            raise ValidationError("The 'since' date must be earlier than the 'until' date")

        items: list[Item] = []
        seen_ids: set[int] = set()
        cursor = since_id

        while True:
            response = self.session.call("items", {"since_id": str(cursor)})
            batch = ItemsPage.from_response(response).items
            if not batch:
                break

            highest_id = cursor
            for item in batch:
                highest_id = max(highest_id, item.id)
                if item.id in seen_ids or item.id > until_id:
                    continue
                items.append(item)
                seen_ids.add(item.id)

            if len(items) != len(seen_ids):
                raise ConsistencyError(
                    "Duplicate item IDs detected in results. "
                    f"Items count: {len(items)}, unique IDs count: {len(seen_ids)}"
                )

            logger.debug(
                "since_id=%d returned %d items, %d kept so far", cursor, len(batch), len(items)
            )
            if len(batch) < BATCH_SIZE:
                break
            if highest_id <= cursor:
                logger.warning("Cursor did not advance past %d, stopping pagination", cursor)
                break
            cursor = highest_id

        items.sort(key=lambda item: item.id)
        return items

    # --- Unread and saved state ---

    def get_unread_ids(self) -> ItemIdList:
        return ItemIdList.from_response(self.session.call("unread_item_ids"), "unread_item_ids")

    def get_saved_ids(self) -> ItemIdList:
        return ItemIdList.from_response(self.session.call("saved_item_ids"), "saved_item_ids")

    def get_unreads(self) -> list[Item]:
        """Fetch every unread item."""
        return self.get_items_from_ids(self.get_unread_ids().ids)

    def get_saved(self) -> list[Item]:
        """Fetch every saved item."""
        return self.get_items_from_ids(self.get_saved_ids().ids)

    # --- Marking ---

    def set_mark(self, action: str, id: int | str) -> dict:
        """Mark an item as read, saved or unsaved.

        Args:
            action: One of ``read``, ``saved`` or ``unsaved``.
            id: The item id.

        Returns:
            The raw server response.

        Raises:
            UnsupportedOperationError: For ``unread``, which the keyed protocol lacks.
            ValidationError: For any other unknown action.
        """
        if action == "unread":
            raise UnsupportedOperationError("The Fever API does not support marking as 'unread'")
        if action not in MARK_ACTIONS:
            raise ValidationError(
                f"Unknown mark action {action!r}; expected one of {', '.join(MARK_ACTIONS)}"
            )

        response = self.session.call("api", {"mark": "item", "as_": action, "id": id})

        expected = _MARK_RESPONSE_FIELDS[action]
        if expected not in response:
            logger.warning("The response to set_mark does not contain '%s'", expected)
        return response
