"""Client configuration with environment-variable fallback."""

import os
from dataclasses import dataclass

from freshrss_sync.errors import ConfigurationError

HOST_ENV = "FRESHRSS_API_HOST"
USERNAME_ENV = "FRESHRSS_API_USERNAME"
PASSWORD_ENV = "FRESHRSS_API_PASSWORD"
VERBOSE_ENV = "FRESHRSS_API_VERBOSE"
VERIFY_SSL_ENV = "FRESHRSS_API_VERIFY_SSL"
TIMEOUT_ENV = "FRESHRSS_API_TIMEOUT"

DEFAULT_TIMEOUT = 15.0

_TRUTHY = ("true", "1", "yes")


@dataclass(frozen=True)
class ClientConfig:
    """Settings captured once when a client is built."""

    host: str
    username: str
    password: str
    verbose: bool = False
    verify_ssl: bool = True
    timeout: float = DEFAULT_TIMEOUT

    def __repr__(self) -> str:
        return (
            f"ClientConfig(host={self.host!r}, username={self.username!r}, "
            f"password='***', verbose={self.verbose}, "
            f"verify_ssl={self.verify_ssl}, timeout={self.timeout})"
        )

    def endpoint(self, script: str) -> str:
        """Return the API script URL under the normalized host."""
        return f"{normalize_host(self.host)}api/{script}"


def resolve_config(
    host: str | None = None,
    username: str | None = None,
    password: str | None = None,
    verbose: bool | None = None,
    verify_ssl: bool | None = None,
    timeout: float | None = None,
) -> ClientConfig:
    """Build a ClientConfig from explicit arguments, falling back to the environment.

    Args:
        host: Server base URL, e.g. ``https://rss.example.com``.
        username: Account name.
        password: Account password (or API password).
        verbose: Log request tracing at INFO instead of DEBUG.
        verify_ssl: Verify TLS certificates.
        timeout: Per-request timeout in seconds.

    Returns:
        The resolved, immutable configuration.

    Raises:
        ConfigurationError: If host, username or password is missing, or a
            setting read from the environment is malformed.
    """
    host = host or os.environ.get(HOST_ENV)
    username = username or os.environ.get(USERNAME_ENV)
    password = password or os.environ.get(PASSWORD_ENV)

    if not host:
        raise ConfigurationError(
            f"Host URL is required. Provide it as an argument or set {HOST_ENV} environment variable."
        )
    if not username:
        raise ConfigurationError(
            f"Username is required. Provide it as an argument or set {USERNAME_ENV} environment variable."
        )
    if not password:
        raise ConfigurationError(
            f"Password is required. Provide it as an argument or set {PASSWORD_ENV} environment variable."
        )

    if verbose is None:
        verbose = _env_flag(VERBOSE_ENV, False)
    if verify_ssl is None:
        verify_ssl = _env_flag(VERIFY_SSL_ENV, True)
    if timeout is None:
        raw = os.environ.get(TIMEOUT_ENV)
        try:
            timeout = float(raw) if raw else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigurationError(f"{TIMEOUT_ENV} must be a number, got {raw!r}")
    if timeout <= 0:
        raise ConfigurationError("Timeout must be a positive number of seconds")

    return ClientConfig(
        host=host,
        username=username,
        password=password,
        verbose=bool(verbose),
        verify_ssl=bool(verify_ssl),
        timeout=float(timeout),
    )


def normalize_host(host: str) -> str:
    """Return host with exactly one trailing slash."""
    return host.rstrip("/") + "/"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY
