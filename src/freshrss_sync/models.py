"""Data models for freshrss-sync."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from freshrss_sync.errors import APIError


@dataclass(frozen=True)
class Item:
    """A single article as returned by the server."""

    id: int
    feed_id: int
    title: str = ""
    author: str = ""
    html: str = ""
    url: str = ""
    is_saved: bool = False
    is_read: bool = False
    created_on_time: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Item":
        """Decode an item dict from a keyed-protocol ``items`` response.

        Raises:
            APIError: If the item has no id or a numeric field is malformed.
        """
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            raise APIError(f"Malformed item in response: {data!r:.100}")
        return cls(
            id=_int(data["id"], "id"),
            feed_id=_int(data.get("feed_id") or 0, "feed_id"),
            title=str(data.get("title") or ""),
            author=str(data.get("author") or ""),
            html=str(data.get("html") or ""),
            url=str(data.get("url") or ""),
            is_saved=bool(_int(data.get("is_saved") or 0, "is_saved")),
            is_read=bool(_int(data.get("is_read") or 0, "is_read")),
            created_on_time=_int(data.get("created_on_time") or 0, "created_on_time"),
        )

    @property
    def created_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.created_on_time, tz=timezone.utc)

    @property
    def id_datetime(self) -> datetime:
        # ids are microsecond timestamps
        return datetime.fromtimestamp(self.id / 1_000_000, tz=timezone.utc)


@dataclass(frozen=True)
class FeverCredential:
    """Key for the keyed protocol; valid until the password changes."""

    api_key: str

    def __repr__(self) -> str:
        return "FeverCredential(api_key='***')"


@dataclass(frozen=True)
class ReaderCredential:
    """Session triple issued by the session protocol's login and token exchange."""

    sid: str
    auth: str
    token: str

    def __repr__(self) -> str:
        return "ReaderCredential(sid='***', auth='***', token='***')"


# --- Keyed protocol responses ---


@dataclass(frozen=True)
class AuthProbe:
    auth: bool
    api_version: int | None = None
    last_refreshed_on_time: int | None = None

    @classmethod
    def from_response(cls, data: dict) -> "AuthProbe":
        return cls(
            auth=bool(data.get("auth")),
            api_version=_optional_int(data.get("api_version"), "api_version"),
            last_refreshed_on_time=_optional_int(data.get("last_refreshed_on_time"), "last_refreshed_on_time"),
        )


@dataclass(frozen=True)
class ItemsPage:
    """One page of an ``items`` response."""

    items: list[Item] = field(default_factory=list)
    total_items: int | None = None

    @classmethod
    def from_response(cls, data: dict) -> "ItemsPage":
        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise APIError("Malformed items response: 'items' is not a list")
        return cls(
            items=[Item.from_dict(raw) for raw in raw_items],
            total_items=_optional_int(data.get("total_items"), "total_items"),
        )

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ItemIdList:
    """A comma-separated id list such as ``unread_item_ids``."""

    ids: list[int] = field(default_factory=list)

    @classmethod
    def from_response(cls, data: dict, key: str) -> "ItemIdList":
        raw = str(data.get(key) or "")
        return cls(ids=[_int(part.strip(), key) for part in raw.split(",") if part.strip()])

    def __len__(self) -> int:
        return len(self.ids)


# --- Session protocol responses ---


@dataclass(frozen=True)
class LoginResponse:
    """Body of ``accounts/ClientLogin``: one ``KEY=VALUE`` pair per line."""

    values: dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str) -> "LoginResponse":
        values = {}
        for line in text.splitlines():
            key, sep, value = line.strip().partition("=")
            if sep and key:
                values[key] = value.strip()
        return cls(values=values)

    @property
    def sid(self) -> str | None:
        return self.values.get("SID") or None

    @property
    def auth(self) -> str | None:
        return self.values.get("Auth") or None


@dataclass(frozen=True)
class UnreadCount:
    id: str
    count: int
    newest_item_timestamp_usec: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "UnreadCount":
        if not isinstance(data, dict):
            raise APIError(f"Malformed unread count in response: {data!r:.100}")
        return cls(
            id=str(data.get("id", "")),
            count=_int(data.get("count") or 0, "count"),
            newest_item_timestamp_usec=_optional_int(
                data.get("newestItemTimestampUsec"), "newestItemTimestampUsec"
            ),
        )


@dataclass(frozen=True)
class StreamPage:
    """One page of a session-protocol stream; ``continuation`` fetches the next."""

    items: list[dict] = field(default_factory=list)
    continuation: str | None = None

    @classmethod
    def from_response(cls, data: dict) -> "StreamPage":
        return cls(
            items=list(data.get("items") or []),
            continuation=data.get("continuation") or None,
        )


def _optional_int(value, name: str) -> int | None:
    if value is None or value == "":
        return None
    return _int(value, name)


def _int(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise APIError(f"Malformed response: {name}={value!r} is not an integer")
