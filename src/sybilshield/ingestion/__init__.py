"""
Data gathering for actor review.

Fetches public profile text that callers turn into links, bios and wallets
before running controller-group resolution.
"""

from sybilshield.ingestion.safe_fetch import (
    BlockedHostError,
    DisallowedSchemeError,
    FetchedText,
    FetchError,
    FetchOptions,
    FetchStatusError,
    InvalidFetchURLError,
    MissingRedirectLocationError,
    ResponseTooLargeError,
    TooManyRedirectsError,
    is_blocked_host,
    safe_fetch_text,
)

__all__ = [
    "safe_fetch_text",
    "is_blocked_host",
    "FetchOptions",
    "FetchedText",
    # Errors
    "FetchError",
    "InvalidFetchURLError",
    "DisallowedSchemeError",
    "BlockedHostError",
    "MissingRedirectLocationError",
    "TooManyRedirectsError",
    "FetchStatusError",
    "ResponseTooLargeError",
]
