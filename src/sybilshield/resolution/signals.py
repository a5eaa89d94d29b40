"""
Feature extraction for controller-group signals.

Wallet addresses here are EVM-shaped strings ("0x" + 40 hex digits) found in
free text. Nothing is verified on-chain; the shape is only a proxy for an
account.
"""

import re
from typing import Iterable, Optional
from urllib.parse import urlsplit

WALLET_RE = re.compile(r"0x[a-fA-F0-9]{40}")
WALLET_IN_TEXT_RE = re.compile(r"\b0x[a-fA-F0-9]{40}\b", re.ASCII)

# Characters a URL host may not contain
FORBIDDEN_HOST_CHARS_RE = re.compile(r"[\x00-\x20#%/<>?@\[\\\]^|\x7f]")

# Platform domains shared by unrelated people; carry no grouping signal
COMMON_DOMAINS = frozenset({
    "github.com",
    "gist.github.com",
    "raw.githubusercontent.com",
    "twitter.com",
    "x.com",
    "talent.app",
    "warpcast.com",
    "farcaster.xyz",
    "t.me",
    "telegram.me",
    "discord.gg",
    "discord.com",
    "linktr.ee",
    "medium.com",
    "youtube.com",
    "youtu.be",
})

HANDLE_SEPARATOR = ":"


def is_wallet_address(value: str) -> bool:
    """Check whether a string is exactly an EVM-shaped address."""
    return isinstance(value, str) and WALLET_RE.fullmatch(value) is not None


def extract_wallet_addresses(text: Optional[str]) -> list[str]:
    """
    Find every wallet-shaped address in a text blob.

    Matches must sit on word boundaries, so longer hex runs are ignored.
    Results are lowercased and duplicates are kept; callers de-duplicate.
    """
    if not text:
        return []
    return [m.group(0).lower() for m in WALLET_IN_TEXT_RE.finditer(text)]


def extract_domain(link: str) -> Optional[str]:
    """
    Hostname of a link without a leading "www.", lowercased.

    Returns None for anything that is not an absolute URL with a host.
    """
    try:
        parts = urlsplit(link.strip())
        hostname = parts.hostname
        parts.port  # raises on a non-numeric or out-of-range port
    except (ValueError, AttributeError):
        return None

    if not parts.scheme or not hostname:
        return None
    if FORBIDDEN_HOST_CHARS_RE.search(hostname):
        return None
    if not hostname.isascii():
        try:
            hostname = hostname.encode("idna").decode("ascii")
        except UnicodeError:
            return None
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname.lower() or None


def extract_domains(links: Iterable[str]) -> list[str]:
    """Domains of all parseable links, in link order. Malformed links are skipped."""
    domains = []
    for link in links:
        domain = extract_domain(link)
        if domain is not None:
            domains.append(domain)
    return domains


def base_handle(actor: str) -> Optional[str]:
    """
    Handle part of a platform-qualified actor ("github:Alice" -> "alice").

    Everything after the first separator is kept, so "ens:alice:eth" yields
    "alice:eth". Returns None when the actor has no platform prefix.
    """
    _, sep, handle = actor.partition(HANDLE_SEPARATOR)
    if not sep:
        return None
    return handle.strip().lower()
