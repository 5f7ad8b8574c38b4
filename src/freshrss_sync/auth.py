"""Authentication for the keyed (Fever) and session (Google Reader) protocols.

Each authenticator turns a ClientConfig into an immutable, authenticated
session. Sessions share one calling convention, ``call(...) -> response``,
so the layers above never touch protocol-specific credential fields.
"""

import enum
import hashlib
import logging
from dataclasses import dataclass, replace
from typing import Protocol

from freshrss_sync.config import ClientConfig
from freshrss_sync.errors import APIError, AuthenticationError
from freshrss_sync.models import AuthProbe, FeverCredential, LoginResponse, ReaderCredential
from freshrss_sync.transport import Transport

logger = logging.getLogger(__name__)

FEVER_SCRIPT = "fever.php"
GREADER_SCRIPT = "greader.php"

LOGIN_PATH = "accounts/ClientLogin"
TOKEN_PATH = "reader/api/0/token"

DEFAULT_CLIENT_NAME = "freshrss-sync"


class Session(Protocol):
    """What the sync layer needs from an authenticated session."""

    def call(self, operation: str = "api", params: dict | None = None): ...


# --- Keyed protocol ---


def derive_api_key(username: str, password: str) -> str:
    """Return the Fever API key: md5 hex of ``username:password``."""
    return hashlib.md5(f"{username}:{password}".encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class FeverSession:
    """Authenticated keyed-protocol session.

    Every call is a POST to the single endpoint with the key in the form
    body; the operation is selected by query flags.
    """

    credential: FeverCredential
    endpoint: str
    transport: Transport

    def call(self, operation: str = "api", params: dict | None = None) -> dict:
        """Call one keyed-protocol operation.

        Args:
            operation: Query flag selecting the operation (``items``,
                ``unread_item_ids``, ...). ``api`` alone is the auth probe.
            params: Extra query parameters. ``as_`` is sent as ``as``.

        Raises:
            AuthenticationError: If the server no longer accepts the key.
            APIError: If the body is not a JSON object.
        """
        query = {"api": ""}
        if operation != "api":
            query[operation] = ""
        for key, value in (params or {}).items():
            query["as" if key == "as_" else key] = value

        response = self.transport.execute(
            self.endpoint,
            method="POST",
            params=query,
            data={"api_key": self.credential.api_key},
        )
        if not isinstance(response, dict):
            raise APIError(
                f"Unexpected response from {self.endpoint}: expected a JSON object"
            )
        if not response.get("auth"):
            raise AuthenticationError("Invalid API credentials")
        return response


class KeyedAuthenticator:
    """Derives the API key and validates it with one probe request."""

    def __init__(self, config: ClientConfig, transport: Transport):
        self.config = config
        self.transport = transport
        self.endpoint = config.endpoint(FEVER_SCRIPT)

    @classmethod
    def create(cls, config: ClientConfig, transport: Transport) -> FeverSession:
        return cls(config, transport).authenticate()

    def authenticate(self) -> FeverSession:
        """Probe the endpoint with the derived key.

        Raises:
            AuthenticationError: If the probe response has no truthy ``auth``.
        """
        credential = FeverCredential(
            api_key=derive_api_key(self.config.username, self.config.password)
        )
        logger.debug("Using Fever API endpoint: %s", self.endpoint)

        response = self.transport.execute(
            self.endpoint,
            method="POST",
            params={"api": ""},
            data={"api_key": credential.api_key},
        )
        probe = AuthProbe.from_response(response if isinstance(response, dict) else {})
        if not probe.auth:
            raise AuthenticationError("Failed to authenticate with FreshRSS API")

        logger.debug("Authenticated against Fever API version %s", probe.api_version)
        return FeverSession(credential=credential, endpoint=self.endpoint, transport=self.transport)


# --- Session protocol ---


class AuthState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    LOGGED_IN = "logged_in"
    TOKENIZED = "tokenized"
    FAILED = "failed"


@dataclass(frozen=True)
class ReaderSession:
    """Authenticated session-protocol session.

    Each call carries the ``GoogleLogin`` authorization header, the SID
    cookie and the ``T`` token parameter.
    """

    credential: ReaderCredential
    endpoint: str
    transport: Transport
    client_name: str = DEFAULT_CLIENT_NAME

    def call(self, operation: str = "api", params: dict | None = None, method: str = "GET"):
        """Call the session-protocol path ``operation``; ``None`` params are dropped."""
        query = {k: v for k, v in (params or {}).items() if v is not None}
        query.update({"T": self.credential.token, "client": self.client_name, "output": "json"})
        return self.transport.execute(
            url_join(self.endpoint, operation),
            method=method,
            params=query,
            headers={
                "Authorization": f"GoogleLogin auth={self.credential.auth}",
                "Cookie": f"SID={self.credential.sid}",
            },
        )

    def with_client_name(self, name: str) -> "ReaderSession":
        return replace(self, client_name=name)


class SessionAuthenticator:
    """Login and token exchange for the session protocol.

    States run ``UNAUTHENTICATED -> LOGGED_IN -> TOKENIZED``; any failure
    moves to ``FAILED``. The credential is only built once the token is
    known, so a half-authenticated session is never handed out.
    """

    def __init__(self, config: ClientConfig, transport: Transport):
        self.config = config
        self.transport = transport
        self.endpoint = config.endpoint(GREADER_SCRIPT)
        self._state = AuthState.UNAUTHENTICATED

    @property
    def state(self) -> AuthState:
        return self._state

    @classmethod
    def create(cls, config: ClientConfig, transport: Transport) -> ReaderSession:
        return cls(config, transport).authenticate()

    def authenticate(self) -> ReaderSession:
        """Run the login sequence once.

        Raises:
            AuthenticationError: If login lacks ``Auth`` or ``SID``, if the
                token is empty, or if the sequence already ran.
        """
        if self._state is not AuthState.UNAUTHENTICATED:
            raise AuthenticationError(
                f"Authentication already attempted (state: {self._state.value})"
            )
        logger.debug("Using Google Reader API endpoint: %s", self.endpoint)

        try:
            login = self._login()
            self._state = AuthState.LOGGED_IN
            token = self._fetch_token(login.auth)
        except Exception:
            self._state = AuthState.FAILED
            raise

        self._state = AuthState.TOKENIZED
        return ReaderSession(
            credential=ReaderCredential(sid=login.sid, auth=login.auth, token=token),
            endpoint=self.endpoint,
            transport=self.transport,
        )

    def _login(self) -> LoginResponse:
        response = self.transport.execute(
            url_join(self.endpoint, LOGIN_PATH),
            method="POST",
            params={"Email": self.config.username, "Passwd": self.config.password},
        )
        login = LoginResponse.parse(_as_text(response))
        if not login.auth:
            raise AuthenticationError("Failed to authenticate with FreshRSS API: missing Auth")
        if not login.sid:
            raise AuthenticationError("Failed to authenticate with FreshRSS API: missing SID")
        return login

    def _fetch_token(self, auth: str) -> str:
        response = self.transport.execute(
            url_join(self.endpoint, TOKEN_PATH),
            method="GET",
            headers={"Authorization": f"GoogleLogin auth={auth}"},
        )
        token = _as_text(response).strip()
        if not token:
            raise AuthenticationError("Failed to retrieve session token from FreshRSS API")
        return token


def url_join(endpoint: str, path: str) -> str:
    return f"{endpoint.rstrip('/')}/{path.lstrip('/')}"


def _as_text(body) -> str:
    # JSON or other structured bodies are not valid login or token answers
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        return body
    return ""
