"""
Constrained text fetching for public profile pages.

Used to gather bios and link pages before resolution. Every hop is checked
against a scheme allowlist and a private-host blocklist, redirects are
followed by hand so each target is re-validated, and bodies are streamed
and abandoned as soon as they pass the size cap.
"""

import ipaddress
import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from sybilshield.config import settings

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
MAX_REDIRECTS_LIMIT = 10
MIN_TIMEOUT_SECONDS = 1.0
ERROR_DETAIL_BYTES = 1024


class FetchError(Exception):
    """Base class for safe fetch failures."""


class InvalidFetchURLError(FetchError):
    """URL could not be parsed."""


class DisallowedSchemeError(FetchError):
    """URL scheme is not https (or http when allowed)."""


class BlockedHostError(FetchError):
    """Host is local or on a private network."""


class MissingRedirectLocationError(FetchError):
    """Redirect response without a Location header."""


class TooManyRedirectsError(FetchError):
    """Redirect chain longer than allowed."""


class FetchStatusError(FetchError):
    """Final response had a non-success status."""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Fetch failed ({status_code}): {detail}")


class ResponseTooLargeError(FetchError):
    """Response body larger than the byte limit."""


@dataclass
class FetchOptions:
    """Limits applied to a single fetch."""

    max_bytes: int = field(default_factory=lambda: settings.fetch_max_bytes)
    timeout_seconds: float = field(default_factory=lambda: settings.fetch_timeout_seconds)
    user_agent: Optional[str] = field(default_factory=lambda: settings.fetch_user_agent)
    allow_http: bool = field(default_factory=lambda: settings.fetch_allow_http)
    max_redirects: int = field(default_factory=lambda: settings.fetch_max_redirects)

    def normalized(self) -> "FetchOptions":
        """Clamp limits into their accepted ranges."""
        return FetchOptions(
            max_bytes=max(1, self.max_bytes),
            timeout_seconds=max(MIN_TIMEOUT_SECONDS, self.timeout_seconds),
            user_agent=self.user_agent,
            allow_http=bool(self.allow_http),
            max_redirects=min(max(self.max_redirects, 0), MAX_REDIRECTS_LIMIT),
        )


@dataclass
class FetchedText:
    """Decoded body of a successful fetch."""

    content_type: str
    text: str
    final_url: str


def is_blocked_host(hostname: str) -> bool:
    """Check whether a host points at this machine or a private network."""
    host = hostname.lower().strip("[]")
    if host == "localhost" or host.endswith(".local"):
        return True
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return False
    return ip.is_loopback or ip.is_private or ip.is_link_local or ip.is_unspecified


def _parse_url(url: str) -> httpx.URL:
    try:
        return httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidFetchURLError(f"Invalid URL: {url!r}") from e


def assert_allowed_url(url: httpx.URL, allow_http: bool) -> None:
    """Raise unless the URL may be fetched."""
    if url.scheme != "https" and not (allow_http and url.scheme == "http"):
        raise DisallowedSchemeError(f"URL scheme not allowed: {url.scheme or '(none)'}")
    if not url.host or is_blocked_host(url.host):
        raise BlockedHostError(f"Blocked host: {url.host or '(none)'}")


async def safe_fetch_text(
    url: str,
    options: Optional[FetchOptions] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FetchedText:
    """
    Fetch a URL as text under size, timeout, redirect and host constraints.

    Args:
        url: Absolute URL to fetch
        options: Fetch limits, defaults from settings
        client: Client to reuse; a short-lived one is created otherwise

    Returns:
        Content type, decoded text and the URL after redirects

    Raises:
        FetchError: one of its subclasses for every rejected URL or response
    """
    opts = (options or FetchOptions()).normalized()

    current = _parse_url(url)
    assert_allowed_url(current, opts.allow_http)

    headers = {}
    if opts.user_agent:
        headers["User-Agent"] = opts.user_agent

    if client is None:
        async with httpx.AsyncClient(timeout=opts.timeout_seconds) as owned_client:
            return await _fetch_following_redirects(owned_client, current, headers, opts)
    return await _fetch_following_redirects(client, current, headers, opts)


async def _fetch_following_redirects(
    client: httpx.AsyncClient,
    current: httpx.URL,
    headers: dict[str, str],
    opts: FetchOptions,
) -> FetchedText:
    for _ in range(opts.max_redirects + 1):
        async with client.stream(
            "GET",
            str(current),
            headers=headers,
            follow_redirects=False,
            timeout=opts.timeout_seconds,
        ) as response:
            status = response.status_code

            if status in REDIRECT_STATUSES:
                location = response.headers.get("location")
            elif not 200 <= status < 300:
                detail = await _read_body(response, ERROR_DETAIL_BYTES, truncate=True)
                raise FetchStatusError(
                    status, detail.decode("utf-8", errors="replace")[:200]
                )
            else:
                _check_declared_length(response, opts.max_bytes)
                body = await _read_body(response, opts.max_bytes)
                return FetchedText(
                    content_type=response.headers.get("content-type", ""),
                    text=body.decode("utf-8", errors="replace"),
                    final_url=str(current),
                )

        if not location:
            raise MissingRedirectLocationError(
                f"Redirect ({status}) missing Location header"
            )
        next_url = current.join(location)
        assert_allowed_url(next_url, opts.allow_http)
        logger.debug(f"Following redirect {current} -> {next_url}")
        current = next_url

    raise TooManyRedirectsError(f"Too many redirects (limit {opts.max_redirects})")


def _check_declared_length(response: httpx.Response, max_bytes: int) -> None:
    declared = response.headers.get("content-length")
    if declared is None:
        return
    try:
        length = int(declared)
    except ValueError:
        return
    if length > max_bytes:
        raise ResponseTooLargeError(
            f"Response too large ({length} > {max_bytes} bytes declared)"
        )


async def _read_body(
    response: httpx.Response, max_bytes: int, truncate: bool = False
) -> bytes:
    """
    Read a streamed body, stopping as soon as it passes `max_bytes`.

    With `truncate` the first `max_bytes` are returned instead of raising.
    """
    chunks = []
    total = 0
    async for chunk in response.aiter_bytes():
        total += len(chunk)
        if total > max_bytes:
            if truncate:
                chunks.append(chunk[: max_bytes - (total - len(chunk))])
                break
            raise ResponseTooLargeError(f"Response too large (>{max_bytes} bytes)")
        chunks.append(chunk)
    return b"".join(chunks)
