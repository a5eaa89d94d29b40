"""
Tests for controller-group materialization and scoring.
"""

import pytest

from sybilshield.resolution.clustering import (
    ControllerGroup,
    build_groups,
    collect_evidence,
    score_group,
)
from sybilshield.resolution.ledger import EvidenceLedger
from sybilshield.resolution.union_find import DisjointSet

ALL_INDICATORS = [
    "Shared wallet: 0xabc",
    "Common funder: 0xdef",
    "Shared link: https://drop.example",
    "Shared domain: drop.example",
]


class TestScoreGroup:
    """Tests for the confidence heuristic."""

    def test_pair_without_signals(self):
        """Two members and no indicators score the base only."""
        assert score_group(2, []) == 0.25
        assert score_group(2, ["Same handle across platforms: alice"]) == 0.25

    def test_size_ramp(self):
        """Each member beyond two adds 0.1, capped at 0.25."""
        assert score_group(3, []) == pytest.approx(0.35)
        assert score_group(4, []) == pytest.approx(0.45)
        assert score_group(5, []) == pytest.approx(0.50)
        assert score_group(50, []) == pytest.approx(0.50)

    @pytest.mark.parametrize(
        "reason,expected",
        [
            ("Shared wallet: 0xabc", 0.50),
            ("Common funder: 0xdef", 0.50),
            ("Shared link: https://drop.example", 0.40),
            ("Shared domain: drop.example", 0.35),
            ("Shared handle stem: alic", 0.25),
        ],
    )
    def test_indicator_weights(self, reason, expected):
        """Each indicator adds its fixed weight."""
        assert score_group(2, [reason]) == pytest.approx(expected)

    def test_indicator_counted_once(self):
        """Several reasons of one kind add the weight once."""
        reasons = ["Shared wallet: 0x1", "Shared wallet: 0x2"]
        assert score_group(2, reasons) == pytest.approx(0.50)

    def test_clamped_to_one(self):
        """Large groups with every indicator are clamped to 1.0."""
        assert score_group(12, ALL_INDICATORS) == 1.0

    def test_always_within_bounds(self):
        """Scores stay in [0, 1] for any size and indicator mix."""
        for size in range(2, 30):
            for k in range(len(ALL_INDICATORS) + 1):
                score = score_group(size, ALL_INDICATORS[:k])
                assert 0.0 <= score <= 1.0


class CountingLedger(EvidenceLedger):
    """Ledger that counts pair lookups."""

    def __init__(self):
        super().__init__()
        self.lookups = 0

    def reason_set(self, a, b):
        self.lookups += 1
        return super().reason_set(a, b)


class TestCollectEvidence:
    """Tests for group-level evidence aggregation."""

    def test_stops_after_limit(self):
        """Later pairs are not scanned once the limit is reached."""
        ledger = EvidenceLedger()
        for i in range(8):
            ledger.add("a", "b", f"Shared handle stem: s{i}")
        ledger.add("a", "c", "Shared wallet: 0xabc")

        reasons = collect_evidence(["a", "b", "c"], ledger)
        assert len(reasons) == 8
        assert "Shared wallet: 0xabc" not in reasons

    def test_one_pair_can_exceed_limit(self):
        """The limit is checked after each pair, not each reason."""
        ledger = EvidenceLedger()
        for i in range(7):
            ledger.add("a", "b", f"Shared handle stem: s{i}")
        for i in range(3):
            ledger.add("a", "c", f"Shared link: l{i}")

        assert len(collect_evidence(["a", "b", "c"], ledger)) == 10

    def test_transitive_pairs_without_entries(self):
        """Pairs never directly unioned contribute nothing."""
        ledger = EvidenceLedger()
        ledger.add("a", "b", "Shared link: x")
        ledger.add("b", "c", "Shared link: y")
        assert collect_evidence(["a", "b", "c"], ledger) == [
            "Shared link: x",
            "Shared link: y",
        ]

    def test_large_group_scans_only_recorded_pairs(self):
        """A big star-shaped group reads only the pairs that were unioned."""
        members = [f"m{i:04d}" for i in range(2000)]
        ledger = CountingLedger()
        for other in members[1:]:
            ledger.add(members[0], other, "Shared link: x")

        assert collect_evidence(members, ledger) == ["Shared link: x"]
        assert ledger.lookups == len(members) - 1

    def test_pair_order_matches_member_order(self):
        """Pairs are read in member order regardless of insertion order."""
        ledger = EvidenceLedger()
        ledger.add("c", "d", "Shared link: cd")
        ledger.add("a", "d", "Shared link: ad")
        ledger.add("b", "c", "Shared link: bc")
        ledger.add("a", "b", "Shared link: ab")

        assert collect_evidence(["a", "b", "c", "d"], ledger) == [
            "Shared link: ab",
            "Shared link: ad",
            "Shared link: bc",
            "Shared link: cd",
        ]
        assert collect_evidence(["a", "b", "c", "d"], ledger, limit=2) == [
            "Shared link: ab",
            "Shared link: ad",
        ]

    def test_pairs_outside_group_ignored(self):
        """Ledger partners that are not members contribute nothing."""
        ledger = EvidenceLedger()
        ledger.add("a", "z", "Shared link: outside")
        ledger.add("a", "b", "Shared link: inside")
        assert collect_evidence(["a", "b"], ledger) == ["Shared link: inside"]


class TestBuildGroups:
    """Tests for component materialization."""

    def test_singletons_filtered(self):
        """Components below two members never appear."""
        forest = DisjointSet(["a", "b", "c"])
        forest.union("a", "b")

        groups, ids = build_groups(["a", "b", "c"], forest, EvidenceLedger(), 1)
        assert [g.members for g in groups] == [["a", "b"]]
        assert "c" not in ids

    def test_min_group_size_respected(self):
        """Components smaller than min_group_size are dropped."""
        forest = DisjointSet(["a", "b", "c", "d", "e"])
        forest.union("a", "b")
        forest.union("c", "d")
        forest.union("c", "e")

        groups, ids = build_groups(list("abcde"), forest, EvidenceLedger(), 3)
        assert [g.members for g in groups] == [["c", "d", "e"]]
        assert set(ids) == {"c", "d", "e"}

    def test_members_sorted(self):
        """Members are returned in lexicographic order."""
        forest = DisjointSet(["z", "m", "a"])
        forest.union("z", "m")
        forest.union("z", "a")

        groups, _ = build_groups(["z", "m", "a"], forest, EvidenceLedger())
        assert groups[0].members == ["a", "m", "z"]

    def test_ids_not_renumbered_after_sort(self):
        """Ids follow enumeration order while output follows score."""
        actors = ["a1", "a2", "b1", "b2", "b3"]
        forest = DisjointSet(actors)
        forest.union("a1", "a2")
        forest.union("b1", "b2")
        forest.union("b1", "b3")

        groups, ids = build_groups(actors, forest, EvidenceLedger())
        assert [g.controller_id for g in groups] == [1, 0]
        assert groups[0].members == ["b1", "b2", "b3"]
        assert ids == {"a1": 0, "a2": 0, "b1": 1, "b2": 1, "b3": 1}

    def test_sorted_by_score(self):
        """Higher scores come first regardless of size."""
        actors = ["a1", "a2", "b1", "b2", "b3"]
        forest = DisjointSet(actors)
        ledger = EvidenceLedger()
        forest.union("a1", "a2")
        ledger.add("a1", "a2", "Shared wallet: 0xabc")
        forest.union("b1", "b2")
        forest.union("b1", "b3")

        groups, _ = build_groups(actors, forest, ledger)
        assert groups[0].members == ["a1", "a2"]
        assert groups[0].score == pytest.approx(0.50)
        assert groups[1].score == pytest.approx(0.35)

    def test_ties_broken_by_size(self):
        """Equal scores put the larger group first."""
        actors = ["a1", "a2", "b1", "b2", "b3"]
        forest = DisjointSet(actors)
        ledger = EvidenceLedger()
        forest.union("a1", "a2")
        ledger.add("a1", "a2", "Shared domain: y")
        forest.union("b1", "b2")
        forest.union("b1", "b3")

        groups, _ = build_groups(actors, forest, ledger)
        assert groups[0].score == groups[1].score
        assert groups[0].members == ["b1", "b2", "b3"]
        assert groups[1].members == ["a1", "a2"]

    def test_truncated_evidence_excluded_from_score(self):
        """Reasons cut by the early exit do not raise the score."""
        actors = ["a", "b", "c"]
        forest = DisjointSet(actors)
        ledger = EvidenceLedger()
        forest.union("a", "b")
        forest.union("a", "c")
        for i in range(8):
            ledger.add("a", "b", f"Shared handle stem: s{i}")
        ledger.add("a", "c", "Shared wallet: 0xabc")

        groups, _ = build_groups(actors, forest, ledger)
        assert len(groups[0].evidence) == 8
        assert groups[0].score == pytest.approx(0.35)

    def test_evidence_capped_and_sorted(self):
        """At most eight reasons are reported, in sorted order."""
        actors = ["a", "b", "c"]
        forest = DisjointSet(actors)
        ledger = EvidenceLedger()
        forest.union("a", "b")
        forest.union("a", "c")
        for i in reversed(range(7)):
            ledger.add("a", "b", f"Shared handle stem: s{i}")
        for i in range(3):
            ledger.add("a", "c", f"Shared link: l{i}")

        groups, _ = build_groups(actors, forest, ledger)
        evidence = groups[0].evidence
        assert len(evidence) == 8
        assert evidence == sorted(evidence)
        # scored over every gathered reason
        assert groups[0].score == pytest.approx(0.25 + 0.1 + 0.15)


class TestControllerGroup:
    """Tests for the ControllerGroup dataclass."""

    def test_to_dict(self):
        """Serialization keeps every field."""
        group = ControllerGroup(
            controller_id=3,
            members=["x:alice", "y:alice"],
            score=0.25,
            evidence=["Same handle across platforms: alice"],
        )
        assert group.size == 2
        assert group.to_dict() == {
            "controller_id": 3,
            "members": ["x:alice", "y:alice"],
            "score": 0.25,
            "evidence": ["Same handle across platforms: alice"],
        }
