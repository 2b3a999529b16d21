"""HTTP client that resolves fetch input cards into text.

The request timeout is enforced by httpx, so a slow endpoint aborts with
:class:`FetchError` (``timed_out=True``) instead of hanging a generation.
"""

import logging

import httpx

from workbench.cards import FetchRequestConfig, HttpMethod
from workbench.config import EnvVar, get_environment

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Error while resolving a fetch request.

    Attributes:
        timed_out: Whether the request was aborted by its timeout.
        status_code: HTTP status, when a response was received.
    """

    def __init__(
        self,
        message: str,
        *,
        timed_out: bool = False,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.timed_out = timed_out
        self.status_code = status_code


def clean_headers(headers: dict[str, str]) -> dict[str, str]:
    """Drop headers whose key or value is blank."""
    return {key: value for key, value in headers.items() if key.strip() and value.strip()}


class FetchClient:
    """HTTP client for fetch input cards.

    Any response body is returned as text, whatever its status code;
    non-2xx statuses are logged.

    Example:
        >>> client = FetchClient()
        >>> text = client.request(FetchRequestConfig(url="https://example.com"))

    Attributes:
        default_timeout_ms: Timeout used when a request has none.
    """

    def __init__(
        self,
        default_timeout_ms: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize fetch client.

        Args:
            default_timeout_ms: Fallback timeout in milliseconds. Defaults to
                WORKBENCH_FETCH_TIMEOUT_MS.
            transport: Optional httpx transport (used by tests).
        """
        self.default_timeout_ms = get_environment(
            EnvVar.WORKBENCH_FETCH_TIMEOUT_MS, override=default_timeout_ms
        )
        self._client = httpx.Client(transport=transport, follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "FetchClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request(self, config: FetchRequestConfig) -> str:
        """Send the request described by ``config`` and return the body text.

        Raises:
            FetchError: If the URL is blank, the request times out or the
                connection fails.
        """
        url = config.url.strip()
        if not url:
            raise FetchError("Please enter a URL")

        timeout_ms = config.timeout_ms or self.default_timeout_ms
        content = None
        if config.method != HttpMethod.GET and config.body:
            content = config.body

        logger.info(f"{config.method.value} {url} (timeout {timeout_ms} ms)")
        try:
            response = self._client.request(
                config.method.value,
                url,
                headers=clean_headers(config.headers),
                content=content,
                timeout=timeout_ms / 1000,
            )
        except httpx.TimeoutException as e:
            raise FetchError(
                f"Request to {url} timed out after {timeout_ms} ms", timed_out=True
            ) from e
        except (httpx.RequestError, httpx.InvalidURL, ValueError) as e:
            # ValueError covers header values httpx cannot encode.
            raise FetchError(f"Request to {url} failed: {e}") from e

        if not response.is_success:
            logger.warning(f"{url} returned {response.status_code}")
        return response.text


__all__ = ["FetchClient", "FetchError", "clean_headers"]
