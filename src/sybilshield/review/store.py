"""
SQLite store for per-actor review decisions.

One row per actor identifier. Reviewers confirm an actor as part of a sybil
cluster, dismiss it, or escalate it for a second look.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from sybilshield.config import settings

logger = logging.getLogger(__name__)


class ReviewDecision(str, Enum):
    """Decision a reviewer took on an actor."""

    CONFIRM_SYBIL = "confirm_sybil"
    DISMISS = "dismiss"
    ESCALATE = "escalate"


class ActorReview(BaseModel):
    """A review decision for one actor."""

    actor: str = Field(..., min_length=1, description="Actor identifier")
    decision: ReviewDecision = Field(..., description="Reviewer decision")
    note: Optional[str] = Field(default=None, description="Free-text reviewer note")
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the decision was last written",
    )


class ReviewStore:
    """Key-value store of ActorReview rows keyed by actor."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path is not None else settings.review_db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS actor_reviews (
                    actor TEXT PRIMARY KEY,
                    decision TEXT NOT NULL,
                    note TEXT,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_actor_reviews_decision
                    ON actor_reviews(decision);
            """)
            conn.commit()
            logger.debug(f"Review store initialized: {self.db_path}")
        finally:
            conn.close()

    @staticmethod
    def _row_to_review(row: sqlite3.Row) -> ActorReview:
        return ActorReview(
            actor=row["actor"],
            decision=ReviewDecision(row["decision"]),
            note=row["note"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_review(self, actor: str) -> Optional[ActorReview]:
        """Get the review for an actor, None if never reviewed."""
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM actor_reviews WHERE actor = ?", (actor,)
            ).fetchone()
            return self._row_to_review(row) if row else None
        finally:
            conn.close()

    def get_all_reviews(self) -> list[ActorReview]:
        """Get every stored review, ordered by actor."""
        conn = self._get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM actor_reviews ORDER BY actor"
            ).fetchall()
            return [self._row_to_review(row) for row in rows]
        finally:
            conn.close()

    def upsert_review(self, review: ActorReview) -> None:
        """Insert a review or replace the existing one for the same actor."""
        conn = self._get_connection()
        try:
            conn.execute(
                """
                INSERT INTO actor_reviews (actor, decision, note, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(actor) DO UPDATE SET
                    decision = excluded.decision,
                    note = excluded.note,
                    updated_at = excluded.updated_at
                """,
                (
                    review.actor,
                    review.decision.value,
                    review.note,
                    review.updated_at.isoformat(),
                ),
            )
            conn.commit()
            logger.debug(f"Stored review for {review.actor}: {review.decision.value}")
        finally:
            conn.close()

    def delete_review(self, actor: str) -> None:
        """Delete the review for an actor. Missing actors are ignored."""
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM actor_reviews WHERE actor = ?", (actor,))
            conn.commit()
        finally:
            conn.close()

    def get_decision_counts(self) -> dict[str, int]:
        """Count stored reviews per decision."""
        conn = self._get_connection()
        try:
            rows = conn.execute(
                "SELECT decision, COUNT(*) AS n FROM actor_reviews GROUP BY decision"
            ).fetchall()
            counts = {d.value: 0 for d in ReviewDecision}
            for row in rows:
                counts[row["decision"]] = row["n"]
            return counts
        finally:
            conn.close()
