"""
Per-pair evidence bookkeeping for controller-group resolution.

Only pairs that were directly unioned get an entry. Group-level evidence is
assembled later by scanning all pairs inside a component.
"""

import logging
from typing import Iterator, Mapping, Sequence

from sybilshield.resolution.union_find import DisjointSet

logger = logging.getLogger(__name__)

PAIR_SEPARATOR = "||"

_EMPTY: Mapping[str, None] = {}


def pair_key(a: str, b: str) -> str:
    """Canonical key for an unordered pair: smaller identifier first."""
    return f"{a}{PAIR_SEPARATOR}{b}" if a < b else f"{b}{PAIR_SEPARATOR}{a}"


class EvidenceLedger:
    """Distinct reason strings per unordered actor pair, in first-seen order."""

    def __init__(self):
        # dict used as an ordered set
        self._reasons: dict[str, dict[str, None]] = {}
        # node -> nodes it shares a ledger entry with
        self._partners: dict[str, dict[str, None]] = {}

    def add(self, a: str, b: str, reason: str) -> None:
        """Record a reason for the pair (a, b)."""
        self._reasons.setdefault(pair_key(a, b), {})[reason] = None
        self._partners.setdefault(a, {})[b] = None
        self._partners.setdefault(b, {})[a] = None

    def reasons(self, a: str, b: str) -> list[str]:
        """Reasons recorded for the pair, empty if never directly unioned."""
        return list(self._reasons.get(pair_key(a, b), ()))

    def reason_set(self, a: str, b: str) -> Mapping[str, None]:
        """Read-only view of the pair's reasons, without copying."""
        return self._reasons.get(pair_key(a, b), _EMPTY)

    def partners(self, node: str) -> Mapping[str, None]:
        """Nodes that share at least one recorded pair with `node`."""
        return self._partners.get(node, _EMPTY)

    def __contains__(self, pair: tuple[str, str]) -> bool:
        return pair_key(*pair) in self._reasons

    def __len__(self) -> int:
        return len(self._reasons)

    def __iter__(self) -> Iterator[str]:
        return iter(self._reasons)


def connect_many(
    forest: DisjointSet,
    ledger: EvidenceLedger,
    members: Sequence[str],
    reason: str,
) -> bool:
    """
    Union the first member with every other member and record why.

    Returns True if anything was connected (at least two members).
    """
    if len(members) < 2:
        return False

    first = members[0]
    for other in members[1:]:
        forest.union(first, other)
        ledger.add(first, other, reason)

    logger.debug(f"Connected {len(members)} nodes: {reason}")
    return True
