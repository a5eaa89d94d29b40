"""
Per-actor review decisions.

Reviewers record one decision per actor after looking at its controller
group. The resolver never reads these; presentation layers join them.
"""

from sybilshield.review.store import ActorReview, ReviewDecision, ReviewStore

__all__ = [
    "ActorReview",
    "ReviewDecision",
    "ReviewStore",
]
