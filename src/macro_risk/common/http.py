"""Async HTTP client for the FRED and Treasury JSON APIs, with retry."""

from __future__ import annotations

import logging

import httpx
from tenacity import before_sleep_log, retry, retry_if_exception, stop_after_attempt, wait_exponential

from macro_risk.common.types import JsonDict
from macro_risk.config import get_settings

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

_DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "macro-risk/0.1",
}


def _is_retryable(exc: BaseException) -> bool:
    """Timeouts, dropped connections and 429/5xx responses are worth another try."""
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUS
    return False


_retry_decorator = retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class HttpClient:
    """GET-only async client bound to one API base URL.

    Use as an async context manager so the connection pool is closed.
    """

    def __init__(
        self,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={**_DEFAULT_HEADERS, **(headers or {})},
            timeout=httpx.Timeout(settings.http_timeout if timeout is None else timeout),
            transport=transport,
        )

    @_retry_decorator
    async def get(self, url: str, params: dict | None = None) -> httpx.Response:
        resp = await self._client.get(url, params=params)
        resp.raise_for_status()
        return resp

    async def get_json(self, url: str, params: dict | None = None) -> JsonDict:
        """GET *url* and decode a JSON object body.

        Raises ValueError when the body is not JSON or not an object.
        """
        resp = await self.get(url, params=params)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ValueError(f"Non-JSON response from {url}") from exc
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object from {url}, got {type(payload).__name__}")
        return payload

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
