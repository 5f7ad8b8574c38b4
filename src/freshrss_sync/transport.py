"""HTTP transport used by both protocols."""

import logging
import time

import httpx

from freshrss_sync.errors import DecodeError, HTTPAuthError, HTTPStatusError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 1
DEFAULT_RETRY_DELAY = 2.0
BODY_SNIPPET_LENGTH = 200

USER_AGENT = "freshrss-sync"


class Transport:
    """Performs single HTTP requests and decodes their bodies.

    Decoding follows the response content type: JSON becomes Python
    objects, ``text/*`` becomes ``str`` and anything else is returned as
    raw ``bytes``.
    """

    def __init__(
        self,
        timeout: float = 15.0,
        verify: bool = True,
        verbose: bool = False,
        retries: int = DEFAULT_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        transport: httpx.BaseTransport | None = None,
    ):
        self.retries = retries
        self.retry_delay = retry_delay
        self._trace = logger.info if verbose else logger.debug
        self._client = httpx.Client(
            timeout=timeout,
            verify=verify,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def execute(
        self,
        url: str,
        method: str = "GET",
        params: dict | None = None,
        data: dict | None = None,
        headers: dict | None = None,
    ):
        """Send one request and return the decoded body.

        Network failures and undecodable bodies are retried ``retries``
        times after ``retry_delay`` seconds; HTTP error statuses are not.

        Raises:
            HTTPAuthError: On HTTP 401 or 403.
            HTTPStatusError: On any other status >= 400.
            DecodeError: If a JSON body cannot be parsed.
            TransportError: If the request cannot be completed.
        """
        attempt = 0
        while True:
            try:
                return self._execute_once(url, method, params, data, headers)
            except (httpx.TransportError, DecodeError) as e:
                attempt += 1
                if attempt > self.retries:
                    if isinstance(e, DecodeError):
                        raise
                    raise TransportError(f"Request to {url} failed: {e}") from e
                logger.warning(
                    "Request to %s failed, retrying in %.1fs (%d/%d): %s",
                    url,
                    self.retry_delay,
                    attempt,
                    self.retries,
                    e,
                )
                time.sleep(self.retry_delay)

    def _execute_once(self, url, method, params, data, headers):
        self._trace("%s %s params=%s", method.upper(), url, sorted((params or {}).keys()))
        response = self._client.request(
            method.upper(),
            url,
            params=params,
            data=data,
            headers=headers,
        )
        self._trace("%s %s -> %d", method.upper(), url, response.status_code)

        if response.status_code >= 400:
            body = response.text[:BODY_SNIPPET_LENGTH]
            error_cls = HTTPAuthError if response.status_code in (401, 403) else HTTPStatusError
            raise error_cls(response.status_code, response.reason_phrase, body)

        return decode_body(response)


def decode_body(response: httpx.Response):
    """Decode a response according to its Content-Type header."""
    content_type = response.headers.get("content-type", "").lower()
    if "json" in content_type:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Failed to parse JSON response: {e}") from e
    if content_type.startswith("text/"):
        return response.text
    return response.content
