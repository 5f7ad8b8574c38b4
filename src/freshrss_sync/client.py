"""High-level clients for the two FreshRSS APIs."""

import logging

import httpx

from freshrss_sync.auth import (
    FeverSession,
    KeyedAuthenticator,
    ReaderSession,
    SessionAuthenticator,
)
from freshrss_sync.config import ClientConfig, resolve_config
from freshrss_sync.cursor import DEFAULT_DATE_FORMAT, DateInput
from freshrss_sync.models import Item, ItemIdList, StreamPage, UnreadCount
from freshrss_sync.sync import SyncEngine
from freshrss_sync.transport import Transport

logger = logging.getLogger(__name__)

READING_LIST_PATH = "reader/api/0/stream/contents/user/-/state/com.google/reading-list"
UNREAD_COUNT_PATH = "reader/api/0/unread-count"
USER_INFO_PATH = "reader/api/0/user-info"


def _build_transport(config: ClientConfig, transport: httpx.BaseTransport | None) -> Transport:
    return Transport(
        timeout=config.timeout,
        verify=config.verify_ssl,
        verbose=config.verbose,
        transport=transport,
    )


class FeverClient:
    """Client for the Fever API (``api/fever.php``).

    Build it with ``FeverClient.create(...)``, which authenticates before
    returning. Settings that are not passed are read from the
    ``FRESHRSS_API_*`` environment variables.
    """

    def __init__(self, session: FeverSession, config: ClientConfig):
        self.session = session
        self.config = config
        self.engine = SyncEngine(session)

    @classmethod
    def create(
        cls,
        host: str | None = None,
        username: str | None = None,
        password: str | None = None,
        verbose: bool | None = None,
        *,
        verify_ssl: bool | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "FeverClient":
        """Resolve configuration and authenticate.

        Raises:
            ConfigurationError: If host, username or password is missing.
            AuthenticationError: If the server rejects the derived key.
        """
        config = resolve_config(host, username, password, verbose, verify_ssl, timeout)
        http = _build_transport(config, transport)
        try:
            session = KeyedAuthenticator.create(config, http)
        except Exception:
            http.close()
            raise
        logger.info("Connected to %s as %s", session.endpoint, config.username)
        return cls(session, config)

    def close(self) -> None:
        self.session.transport.close()

    def __enter__(self) -> "FeverClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get_items_from_ids(self, ids: list[int]) -> list[Item]:
        return self.engine.get_items_from_ids(ids)

    def get_items_from_dates(
        self,
        since: DateInput | None,
        until: DateInput | None = None,
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> list[Item]:
        return self.engine.get_items_from_dates(since, until, date_format)

    def get_unread_ids(self) -> ItemIdList:
        return self.engine.get_unread_ids()

    def get_saved_ids(self) -> ItemIdList:
        return self.engine.get_saved_ids()

    def get_unreads(self) -> list[Item]:
        return self.engine.get_unreads()

    def get_saved(self) -> list[Item]:
        return self.engine.get_saved()

    def set_mark(self, action: str, id: int | str) -> dict:
        return self.engine.set_mark(action, id)


class ReaderClient:
    """Client for the Google Reader API (``api/greader.php``)."""

    def __init__(self, session: ReaderSession, config: ClientConfig):
        self.session = session
        self.config = config

    @classmethod
    def create(
        cls,
        host: str | None = None,
        username: str | None = None,
        password: str | None = None,
        verbose: bool | None = None,
        *,
        verify_ssl: bool | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "ReaderClient":
        """Resolve configuration, log in and fetch a session token.

        Raises:
            ConfigurationError: If host, username or password is missing.
            AuthenticationError: If login or the token exchange fails.
        """
        config = resolve_config(host, username, password, verbose, verify_ssl, timeout)
        http = _build_transport(config, transport)
        try:
            session = SessionAuthenticator.create(config, http)
        except Exception:
            http.close()
            raise
        logger.info("Connected to %s as %s", session.endpoint, config.username)
        return cls(session, config)

    def close(self) -> None:
        self.session.transport.close()

    def __enter__(self) -> "ReaderClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def change_client_name(self, name: str) -> None:
        """Set the ``client`` identifier sent with every request."""
        self.session = self.session.with_client_name(name)

    def get_unread_count(self) -> list[UnreadCount]:
        response = self.session.call(UNREAD_COUNT_PATH)
        return [UnreadCount.from_dict(raw) for raw in response.get("unreadcounts", [])]

    def get_entries(
        self,
        count: int = 20,
        order: str = "o",
        newer_than: int | None = None,
        older_than: int | None = None,
        exclude: str | None = None,
        continuation: str | None = None,
    ) -> StreamPage:
        """Fetch one page of the reading list.

        Args:
            count: Maximum number of entries (the server caps this at 1000).
            order: ``o`` for oldest first, ``n`` for newest first.
            newer_than: Only entries newer than this Unix timestamp (seconds).
            older_than: Only entries older than this Unix timestamp (seconds).
            exclude: Stream to exclude, e.g. ``user/-/state/com.google/read``.
            continuation: Token from a previous page.
        """
        response = self.session.call(
            READING_LIST_PATH,
            {
                "n": count,
                "r": order,
                "ot": newer_than,
                "nt": older_than,
                "xt": exclude,
                "c": continuation,
            },
        )
        return StreamPage.from_response(response)

    def get_user_info(self) -> dict:
        return self.session.call(USER_INFO_PATH)
