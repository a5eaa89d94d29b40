"""
Signal passes for controller-group resolution.

Each pass groups nodes by one extracted feature and connects every group
that reaches the pass threshold. Passes only interact through the shared
forest and evidence ledger, so each can be run on its own.

Strength of signal, roughly:
- Shared wallet, common funder: high
- Shared exact link: high
- Shared uncommon domain: medium
- Same handle across platforms: medium
- Shared handle stem: low, needs volume
"""

import logging
from typing import Iterable, Mapping, Optional, Sequence

from sybilshield.resolution.ledger import EvidenceLedger, connect_many
from sybilshield.resolution.signals import (
    COMMON_DOMAINS,
    base_handle,
    extract_domains,
    extract_wallet_addresses,
    is_wallet_address,
)
from sybilshield.resolution.union_find import DisjointSet

logger = logging.getLogger(__name__)

LINK_MIN_ACTORS = 2
DOMAIN_MIN_ACTORS = 3
HANDLE_STEM_MIN_ACTORS = 4
BASE_HANDLE_MIN_ACTORS = 2
BASE_HANDLE_MIN_LENGTH = 3
WALLET_MIN_ACTORS = 2
FUNDER_MIN_WALLETS = 2

# Evidence prefixes, also used by scoring
SHARED_LINK = "Shared link"
SHARED_DOMAIN = "Shared domain"
SHARED_HANDLE_STEM = "Shared handle stem"
SAME_HANDLE = "Same handle across platforms"
SHARED_WALLET = "Shared wallet"
COMMON_FUNDER = "Common funder"


def _index(index: dict[str, dict[str, None]], key: str, member: str) -> None:
    # Insertion-ordered sets keep member order independent of hashing
    index.setdefault(key, {})[member] = None


def _connect_groups(
    forest: DisjointSet,
    ledger: EvidenceLedger,
    index: dict[str, dict[str, None]],
    min_members: int,
    label: str,
) -> int:
    merged = 0
    for key, members in index.items():
        if len(members) < min_members:
            continue
        if connect_many(forest, ledger, list(members), f"{label}: {key}"):
            merged += 1
    return merged


def link_pass(
    forest: DisjointSet,
    ledger: EvidenceLedger,
    actors: Sequence[str],
    links_by_actor: Mapping[str, Sequence[str]],
) -> int:
    """Connect actors that publish the identical link."""
    index: dict[str, dict[str, None]] = {}
    for actor in actors:
        for link in links_by_actor.get(actor) or ():
            _index(index, link, actor)

    return _connect_groups(forest, ledger, index, LINK_MIN_ACTORS, SHARED_LINK)


def domain_pass(
    forest: DisjointSet,
    ledger: EvidenceLedger,
    actors: Sequence[str],
    links_by_actor: Mapping[str, Sequence[str]],
) -> int:
    """
    Connect actors linking to the same uncommon domain.

    Common platform domains are ignored, and a domain needs three distinct
    actors since two people may legitimately share a small site.
    """
    index: dict[str, dict[str, None]] = {}
    for actor in actors:
        domains = extract_domains(links_by_actor.get(actor) or ())
        for domain in dict.fromkeys(domains):
            if domain in COMMON_DOMAINS:
                continue
            _index(index, domain, actor)

    return _connect_groups(forest, ledger, index, DOMAIN_MIN_ACTORS, SHARED_DOMAIN)


def handle_stem_pass(
    forest: DisjointSet,
    ledger: EvidenceLedger,
    handle_stem_by_actor: Mapping[str, str],
) -> int:
    """
    Connect actors whose handles normalize to the same stem.

    Stems come precomputed from the caller. The mapping itself is iterated,
    so its keys need not all be in the actor list.
    """
    index: dict[str, dict[str, None]] = {}
    for actor, stem in handle_stem_by_actor.items():
        if not stem:
            continue
        _index(index, stem, actor)

    return _connect_groups(
        forest, ledger, index, HANDLE_STEM_MIN_ACTORS, SHARED_HANDLE_STEM
    )


def base_handle_pass(
    forest: DisjointSet,
    ledger: EvidenceLedger,
    actors: Sequence[str],
) -> int:
    """Connect the same handle seen on different platforms (github:alice + x:alice)."""
    index: dict[str, dict[str, None]] = {}
    for actor in actors:
        base = base_handle(actor)
        if base is None or len(base) < BASE_HANDLE_MIN_LENGTH:
            continue
        _index(index, base, actor)

    return _connect_groups(forest, ledger, index, BASE_HANDLE_MIN_ACTORS, SAME_HANDLE)


def actor_wallets(
    actor: str,
    bio: Optional[str],
    links: Iterable[str],
    extra_wallets: Iterable[str] = (),
) -> list[str]:
    """
    Distinct lowercased wallets disclosed by one actor.

    Sources: addresses in the bio, addresses in the links, wallets the caller
    already knows about, and the actor id itself when it is wallet-shaped.
    """
    candidates = extract_wallet_addresses(bio)
    candidates.extend(extract_wallet_addresses("\n".join(links)))
    candidates.extend(extra_wallets)
    if is_wallet_address(actor):
        candidates.append(actor)

    return list(dict.fromkeys(w.lower() for w in candidates if is_wallet_address(w)))


def wallet_pass(
    forest: DisjointSet,
    ledger: EvidenceLedger,
    actors: Sequence[str],
    bio_by_actor: Mapping[str, str],
    links_by_actor: Mapping[str, Sequence[str]],
    extra_wallets_by_actor: Optional[Mapping[str, Sequence[str]]] = None,
) -> int:
    """
    Connect actors that disclose the same wallet.

    Only actors are unioned here; wallet strings are not added as nodes.
    """
    extra_wallets_by_actor = extra_wallets_by_actor or {}
    index: dict[str, dict[str, None]] = {}
    for actor in actors:
        wallets = actor_wallets(
            actor,
            bio_by_actor.get(actor),
            [link for link in links_by_actor.get(actor) or () if isinstance(link, str)],
            extra_wallets_by_actor.get(actor) or (),
        )
        for wallet in wallets:
            _index(index, wallet, actor)

    return _connect_groups(forest, ledger, index, WALLET_MIN_ACTORS, SHARED_WALLET)


def funder_pass(
    forest: DisjointSet,
    ledger: EvidenceLedger,
    shared_funders_by_wallet: Mapping[str, Sequence[str]],
) -> int:
    """
    Connect wallets funded by the same funder wallet.

    The funded wallet strings themselves become nodes in the forest. They
    only reach an actor's component when an actor identifier is that exact
    wallet string; otherwise these unions never show up in any group.
    """
    index: dict[str, dict[str, None]] = {}
    for wallet, funders in shared_funders_by_wallet.items():
        for funder in funders or ():
            if not is_wallet_address(funder):
                continue
            _index(index, funder, wallet)

    return _connect_groups(forest, ledger, index, FUNDER_MIN_WALLETS, COMMON_FUNDER)
