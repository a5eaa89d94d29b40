"""
Controller-group resolution pipeline.

Flow:
1. Register every actor in a fresh disjoint-set forest
2. Run the signal passes in fixed order, unioning and recording evidence
3. Materialize components, filter by size, score and sort

The pipeline is pure and synchronous. Every call builds its own forest and
ledger, so concurrent callers never share state.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from sybilshield.config import settings
from sybilshield.resolution.clustering import ControllerGroup, build_groups
from sybilshield.resolution.ledger import EvidenceLedger
from sybilshield.resolution.passes import (
    base_handle_pass,
    domain_pass,
    funder_pass,
    handle_stem_pass,
    link_pass,
    wallet_pass,
)
from sybilshield.resolution.union_find import DisjointSet

logger = logging.getLogger(__name__)


@dataclass
class ResolverInput:
    """Full snapshot of per-actor attributes fed to the resolver."""

    actors: list[str]
    links_by_actor: dict[str, list[str]] = field(default_factory=dict)
    bio_by_actor: dict[str, str] = field(default_factory=dict)
    handle_stem_by_actor: dict[str, str] = field(default_factory=dict)
    shared_funders_by_wallet: dict[str, list[str]] = field(default_factory=dict)
    extra_wallets_by_actor: Optional[dict[str, list[str]]] = None
    min_group_size: Optional[int] = None


@dataclass
class ControllerGroupResult:
    """Result of one resolution run."""

    groups: list[ControllerGroup]
    controller_id_by_actor: dict[str, int]
    stats: dict[str, int] = field(default_factory=dict)
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "groups": [g.to_dict() for g in self.groups],
            "controller_id_by_actor": dict(self.controller_id_by_actor),
            "stats": dict(self.stats),
            "duration_ms": self.duration_ms,
        }


def compute_controller_groups(
    actors: Sequence[str],
    links_by_actor: Optional[Mapping[str, Sequence[str]]] = None,
    bio_by_actor: Optional[Mapping[str, str]] = None,
    handle_stem_by_actor: Optional[Mapping[str, str]] = None,
    shared_funders_by_wallet: Optional[Mapping[str, Sequence[str]]] = None,
    extra_wallets_by_actor: Optional[Mapping[str, Sequence[str]]] = None,
    min_group_size: Optional[int] = None,
) -> ControllerGroupResult:
    """
    Group actors into controller groups.

    Args:
        actors: Actor identifiers, presumed unique
        links_by_actor: Links published by each actor
        bio_by_actor: Bio text of each actor
        handle_stem_by_actor: Precomputed normalized handle stem per actor
        shared_funders_by_wallet: Wallet -> wallets that funded it
        extra_wallets_by_actor: Wallets already known for each actor
        min_group_size: Smallest group reported (never below 2)

    Returns:
        Groups sorted by descending score then size, and the controller id
        of every grouped actor
    """
    start = time.time()

    actors = list(actors)
    links_by_actor = links_by_actor or {}
    bio_by_actor = bio_by_actor or {}
    handle_stem_by_actor = handle_stem_by_actor or {}
    shared_funders_by_wallet = shared_funders_by_wallet or {}
    if min_group_size is None:
        min_group_size = settings.min_group_size

    forest = DisjointSet(actors)
    ledger = EvidenceLedger()

    merges = {
        "link": link_pass(forest, ledger, actors, links_by_actor),
        "domain": domain_pass(forest, ledger, actors, links_by_actor),
        "handle_stem": handle_stem_pass(forest, ledger, handle_stem_by_actor),
        "base_handle": base_handle_pass(forest, ledger, actors),
        "wallet": wallet_pass(
            forest, ledger, actors, bio_by_actor, links_by_actor, extra_wallets_by_actor
        ),
        "funder": funder_pass(forest, ledger, shared_funders_by_wallet),
    }
    for name, count in merges.items():
        logger.debug(f"Pass {name}: {count} feature groups merged")

    groups, controller_id_by_actor = build_groups(
        actors,
        forest,
        ledger,
        min_group_size=min_group_size,
        max_evidence=settings.max_evidence_reasons,
    )

    stats = {
        "total_actors": len(actors),
        "grouped_actors": len(controller_id_by_actor),
        "groups": len(groups),
        "evidence_pairs": len(ledger),
    }
    stats.update({f"{name}_merges": count for name, count in merges.items()})

    return ControllerGroupResult(
        groups=groups,
        controller_id_by_actor=controller_id_by_actor,
        stats=stats,
        duration_ms=int((time.time() - start) * 1000),
    )


class ControllerGroupResolver:
    """
    Resolver bound to a default minimum group size.

    Thin wrapper over compute_controller_groups for callers that resolve
    many snapshots with the same settings.
    """

    def __init__(self, min_group_size: Optional[int] = None):
        self.min_group_size = (
            min_group_size if min_group_size is not None else settings.min_group_size
        )

    def resolve(self, snapshot: ResolverInput) -> ControllerGroupResult:
        """Resolve one snapshot into controller groups."""
        min_group_size = (
            snapshot.min_group_size
            if snapshot.min_group_size is not None
            else self.min_group_size
        )
        result = compute_controller_groups(
            snapshot.actors,
            links_by_actor=snapshot.links_by_actor,
            bio_by_actor=snapshot.bio_by_actor,
            handle_stem_by_actor=snapshot.handle_stem_by_actor,
            shared_funders_by_wallet=snapshot.shared_funders_by_wallet,
            extra_wallets_by_actor=snapshot.extra_wallets_by_actor,
            min_group_size=min_group_size,
        )
        logger.info(
            f"Resolved {result.stats['total_actors']} actors into "
            f"{result.stats['groups']} controller groups "
            f"({result.stats['grouped_actors']} grouped, {result.duration_ms}ms)"
        )
        return result
