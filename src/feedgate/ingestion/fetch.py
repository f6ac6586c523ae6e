"""
Low-level HTTP retrieval shared by every adapter.

Retries transient failures (network errors, timeouts, 5xx, empty bodies) with
capped exponential backoff. 4xx responses are permanent and never retried.
"""
import asyncio
import json
import logging
from typing import Any, Optional

import httpx

from ..config import settings
from ..errors import FetchError, FetchHTTPError, FetchTimeoutError

logger = logging.getLogger(__name__)

ACCEPT_XML = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"
ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_JSON = "application/json, */*;q=0.5"


def backoff_delay(attempt: int, base: float, cap: float) -> float:
    """Delay before retry number `attempt + 1`: base * 2^attempt, capped."""
    return min(base * (2 ** attempt), cap)


def _build_headers(accept: str, extra: Optional[dict[str, str]] = None) -> dict[str, str]:
    headers = {
        "User-Agent": settings.user_agent,
        "Accept": accept,
        "Accept-Language": "en-US,en;q=0.5",
        "Cache-Control": "no-cache",
    }
    if extra:
        headers.update(extra)
    return headers


async def _attempt(client: httpx.AsyncClient, url: str, headers: dict[str, str], timeout: httpx.Timeout) -> str:
    response = await client.get(url, headers=headers, timeout=timeout)
    if response.status_code >= 400:
        raise FetchHTTPError(
            f"HTTP {response.status_code} {response.reason_phrase}",
            url=url,
            status_code=response.status_code,
        )

    accept = headers.get("Accept", "")
    content_type = response.headers.get("content-type", "")
    if accept == ACCEPT_XML and content_type and "xml" not in content_type and "rss" not in content_type:
        logger.warning(f"Content-Type '{content_type}' may not be XML for {url}")

    text = response.text
    if not text.strip():
        raise FetchError("Empty response body", url=url)
    return text


async def fetch_text(
    url: str,
    max_retries: Optional[int] = None,
    timeout_ms: Optional[int] = None,
    *,
    accept: str = ACCEPT_XML,
    headers: Optional[dict[str, str]] = None,
    client: Optional[httpx.AsyncClient] = None,
    backoff_base: Optional[float] = None,
    backoff_cap: Optional[float] = None,
) -> str:
    """
    Fetch a URL as text with retries and a hard per-attempt timeout.

    Args:
        url: Absolute URL to fetch
        max_retries: Retries after the first attempt (default from settings, 2)
        timeout_ms: Per-attempt timeout in milliseconds (default 30000)
        accept: Accept header value
        headers: Extra headers merged over the defaults
        client: Optional shared AsyncClient (not closed here)
        backoff_base: Seconds for the first backoff step
        backoff_cap: Upper bound for a single backoff step

    Returns:
        Response body text

    Raises:
        FetchHTTPError: 4xx immediately, or 5xx after retries are exhausted
        FetchTimeoutError: Every attempt timed out
        FetchError: Any other failure after retries are exhausted
    """
    retries = settings.fetch_max_retries if max_retries is None else max_retries
    timeout_s = (timeout_ms if timeout_ms is not None else settings.request_timeout * 1000) / 1000
    base = settings.fetch_backoff_base_seconds if backoff_base is None else backoff_base
    cap = settings.fetch_backoff_cap_seconds if backoff_cap is None else backoff_cap

    request_headers = _build_headers(accept, headers)
    timeout = httpx.Timeout(timeout_s)

    owns_client = client is None
    http = client or httpx.AsyncClient(follow_redirects=True)

    last_error: Optional[FetchError] = None
    attempts = 0
    try:
        for attempt in range(retries + 1):
            attempts = attempt + 1
            try:
                logger.debug(f"Fetching {url} (attempt {attempts}/{retries + 1})")
                # Hard cap on the whole attempt, including a slowly trickling body
                text = await asyncio.wait_for(_attempt(http, url, request_headers, timeout), timeout=timeout_s)
                logger.info(f"Fetched {len(text)} chars from {url}")
                return text
            except (httpx.TimeoutException, asyncio.TimeoutError):
                last_error = FetchTimeoutError(f"Request timeout ({timeout_s:g}s)", url=url)
            except FetchHTTPError as e:
                last_error = e
            except FetchError as e:
                last_error = e
            except httpx.HTTPError as e:
                last_error = FetchError(f"{type(e).__name__}: {e}", url=url)

            logger.warning(f"Attempt {attempts} failed for {url}: {last_error}")

            # Client errors are permanent
            if isinstance(last_error, FetchHTTPError) and last_error.is_client_error:
                break

            if attempt < retries:
                delay = backoff_delay(attempt, base, cap)
                logger.info(f"Waiting {delay:.1f}s before retrying {url}")
                await asyncio.sleep(delay)
    finally:
        if owns_client:
            await http.aclose()

    message = f"fetch_text failed for {url} after {attempts} attempt(s): {last_error}"
    if isinstance(last_error, FetchHTTPError):
        raise FetchHTTPError(message, url=url, status_code=last_error.status_code, attempts=attempts) from last_error
    if isinstance(last_error, FetchTimeoutError):
        raise FetchTimeoutError(message, url=url, attempts=attempts) from last_error
    raise FetchError(message, url=url, attempts=attempts) from last_error


async def fetch_json(url: str, **kwargs: Any) -> Any:
    """Fetch and decode a JSON document. Same retry semantics as fetch_text."""
    kwargs.setdefault("accept", ACCEPT_JSON)
    text = await fetch_text(url, **kwargs)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise FetchError(f"Invalid JSON from {url}: {e}", url=url) from e


async def polite_delay(seconds: Optional[float] = None) -> None:
    """Fixed pause between successive calls to one scrape target."""
    delay = settings.polite_delay_seconds if seconds is None else seconds
    if delay > 0:
        await asyncio.sleep(delay)
