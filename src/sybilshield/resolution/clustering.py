"""
Controller-group materialization and confidence scoring.

Turns the forest built by the signal passes into scored, evidence-bearing
groups.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from sybilshield.resolution.ledger import EvidenceLedger
from sybilshield.resolution.passes import (
    COMMON_FUNDER,
    SHARED_DOMAIN,
    SHARED_LINK,
    SHARED_WALLET,
)
from sybilshield.resolution.union_find import DisjointSet

logger = logging.getLogger(__name__)

MAX_EVIDENCE_REASONS = 8

BASE_SCORE = 0.25
SIZE_BONUS_CAP = 0.25

# Indicator weights, added once each when any reason carries the prefix
INDICATOR_WEIGHTS = {
    f"{SHARED_WALLET}:": 0.25,
    f"{COMMON_FUNDER}:": 0.25,
    f"{SHARED_LINK}:": 0.15,
    f"{SHARED_DOMAIN}:": 0.10,
}


@dataclass
class ControllerGroup:
    """Actors hypothesized to share a controlling entity."""

    controller_id: int
    members: list[str] = field(default_factory=list)
    score: float = 0.0  # heuristic confidence 0..1
    evidence: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.members)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "controller_id": self.controller_id,
            "members": list(self.members),
            "score": self.score,
            "evidence": list(self.evidence),
        }


def collect_evidence(
    members: Sequence[str],
    ledger: EvidenceLedger,
    limit: int = MAX_EVIDENCE_REASONS,
) -> list[str]:
    """
    Gather reasons from every ledger pair inside a group.

    Pairs are scanned in member order and the scan stops as soon as `limit`
    reasons are held, so later (possibly stronger) reasons can be missed.
    A single pair may push the total past `limit`.
    """
    if limit <= 0:
        return []

    reasons: dict[str, None] = {}
    position = {member: i for i, member in enumerate(members)}
    for i, a in enumerate(members):
        # Only pairs with a ledger entry can add reasons; visit them in the
        # same order a full pairwise scan would.
        later = sorted(
            position[b] for b in ledger.partners(a) if position.get(b, -1) > i
        )
        for j in later:
            reasons.update(ledger.reason_set(a, members[j]))
            if len(reasons) >= limit:
                return list(reasons)
    return list(reasons)


def score_group(member_count: int, reasons: Iterable[str]) -> float:
    """
    Heuristic confidence for a group.

    0.25 base, up to 0.25 more for size (0.1 per member beyond two), plus a
    fixed bonus per high-signal indicator present. Clamped to 1.0.
    """
    reasons = list(reasons)
    score = BASE_SCORE
    score += min((member_count - 2) / 10, SIZE_BONUS_CAP)
    for prefix, weight in INDICATOR_WEIGHTS.items():
        if any(r.startswith(prefix) for r in reasons):
            score += weight
    return min(score, 1.0)


def build_groups(
    actors: Sequence[str],
    forest: DisjointSet,
    ledger: EvidenceLedger,
    min_group_size: int = 2,
    max_evidence: int = MAX_EVIDENCE_REASONS,
) -> tuple[list[ControllerGroup], dict[str, int]]:
    """
    Materialize connected components of the input actors as groups.

    Returns groups sorted by descending score then size, and the controller
    id of every grouped actor. Ids follow component enumeration order and
    are not renumbered by the sort.
    """
    root_groups: dict[str, list[str]] = {}
    for actor in actors:
        root = forest.find(actor)
        root_groups.setdefault(root, []).append(actor)

    threshold = max(2, min_group_size)
    groups: list[ControllerGroup] = []
    controller_id_by_actor: dict[str, int] = {}

    for members in root_groups.values():
        if len(members) < threshold:
            continue
        members = sorted(members)

        reasons = collect_evidence(members, ledger, max_evidence)
        group = ControllerGroup(
            controller_id=len(groups),
            members=members,
            score=score_group(len(members), reasons),
            evidence=sorted(reasons[:max_evidence]),
        )
        groups.append(group)
        for member in members:
            controller_id_by_actor[member] = group.controller_id

    groups.sort(key=lambda g: (-g.score, -g.size))

    logger.debug(
        f"Built {len(groups)} groups from {len(root_groups)} components "
        f"(min size {threshold})"
    )
    return groups, controller_id_by_actor
