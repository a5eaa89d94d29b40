"""
Sybil Shield - controller-group resolution for reviewed actors

A toolkit for reviewers of airdrops, grants and allowlists that:
- Groups handles and wallets likely controlled by the same entity
- Explains every grouping with human-readable evidence
- Keeps per-actor review decisions
- Fetches public profile text under strict network constraints
"""

__version__ = "0.1.0"
