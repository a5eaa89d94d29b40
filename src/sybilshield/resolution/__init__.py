"""
Controller-group resolution for reviewed actors.

This module groups actor identifiers likely controlled by one entity:
- Union-find: Disjoint-set forest over actors and wallets
- Signals: Wallet, domain and handle extraction
- Passes: Independent grouping rules that union and record evidence
- Clustering: Component materialization and confidence scoring
- Resolver: Main resolution pipeline
"""

from sybilshield.resolution.union_find import DisjointSet
from sybilshield.resolution.signals import (
    COMMON_DOMAINS,
    base_handle,
    extract_domains,
    extract_wallet_addresses,
    is_wallet_address,
)
from sybilshield.resolution.ledger import EvidenceLedger, connect_many, pair_key
from sybilshield.resolution.passes import (
    base_handle_pass,
    domain_pass,
    funder_pass,
    handle_stem_pass,
    link_pass,
    wallet_pass,
)
from sybilshield.resolution.clustering import (
    ControllerGroup,
    build_groups,
    collect_evidence,
    score_group,
)
from sybilshield.resolution.resolver import (
    ControllerGroupResolver,
    ControllerGroupResult,
    ResolverInput,
    compute_controller_groups,
)

__all__ = [
    # Union-find
    "DisjointSet",
    # Signals
    "COMMON_DOMAINS",
    "base_handle",
    "extract_domains",
    "extract_wallet_addresses",
    "is_wallet_address",
    # Evidence
    "EvidenceLedger",
    "connect_many",
    "pair_key",
    # Passes
    "link_pass",
    "domain_pass",
    "handle_stem_pass",
    "base_handle_pass",
    "wallet_pass",
    "funder_pass",
    # Clustering
    "ControllerGroup",
    "build_groups",
    "collect_evidence",
    "score_group",
    # Main resolver
    "ControllerGroupResolver",
    "ControllerGroupResult",
    "ResolverInput",
    "compute_controller_groups",
]
