"""
Multi-signal hybrid scoring for search results.

Combines vector similarity with freshness, popularity and tag overlap into a
single ranking scalar. Missing or malformed metadata yields a neutral (zero)
signal instead of excluding the item.
"""

import math
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime, timezone
from typing import Any

from tuberank.models.content import ScoringWeights, StoreMatch
import logging

logger = logging.getLogger(__name__)

FRESHNESS_HORIZON_DAYS = 365.0
# log10(1_000_000) == 6, so popularity saturates around a million views.
POPULARITY_LOG_SCALE = 6.0
SECONDS_PER_DAY = 86400.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_published_at(value: Any) -> datetime | None:
    """Parse a publish date from metadata; returns None when absent or invalid."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _as_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return []
    return [str(tag).lower() for tag in value if str(tag).strip()]


class HybridScorer:
    """Scores items by weighted vector, freshness, popularity and tag signals."""

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or _utcnow

    def freshness_score(self, metadata: Mapping[str, Any], now: datetime | None = None) -> float:
        """Linear decay from 1 (published now) to 0 (a year or older)."""
        published = parse_published_at(metadata.get("publishedAt"))
        if published is None:
            return 0.0

        now = now or self._clock()
        days = (now - published).total_seconds() / SECONDS_PER_DAY
        return max(0.0, 1.0 - max(0.0, days) / FRESHNESS_HORIZON_DAYS)

    def popularity_score(self, metadata: Mapping[str, Any]) -> float:
        view_count = max(0.0, _as_float(metadata.get("viewCount")))
        return min(1.0, math.log10(view_count + 1.0) / POPULARITY_LOG_SCALE)

    def tag_score(self, metadata: Mapping[str, Any], query_text: str) -> float:
        """Fraction of query tokens that overlap (substring either way) with a tag."""
        tokens = (query_text or "").lower().split()
        if not tokens:
            return 0.0

        tags = _as_tags(metadata.get("tags"))
        matched = sum(
            1 for token in tokens
            if any(token in tag or tag in token for tag in tags)
        )
        return matched / len(tokens)

    def score(
        self,
        vector_score: float,
        metadata: Mapping[str, Any] | None,
        query_text: str,
        weights: ScoringWeights | None = None,
    ) -> float:
        """Combine the four signals into one scalar.

        Args:
            vector_score: Raw similarity, clamped into [0, 1]
            metadata: Item metadata (publishedAt, viewCount, tags)
            query_text: Original query text
            weights: Signal weights; defaults to 0.6/0.2/0.15/0.05
        """
        weights = weights or ScoringWeights()
        metadata = metadata or {}
        similarity = min(1.0, max(0.0, _as_float(vector_score)))

        return (
            weights.vector * similarity
            + weights.freshness * self.freshness_score(metadata)
            + weights.popularity * self.popularity_score(metadata)
            + weights.tags * self.tag_score(metadata, query_text)
        )

    def rank(
        self,
        matches: Sequence[StoreMatch],
        query_text: str,
        weights: ScoringWeights | None = None,
    ) -> list[tuple[StoreMatch, float]]:
        """Score matches and sort them by hybrid score, highest first.

        Equal scores keep their store order.
        """
        scored = [
            (match, self.score(match.score, match.metadata, query_text, weights))
            for match in matches
        ]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        logger.debug(f"Hybrid-ranked {len(scored)} matches")
        return scored
