"""
Ranking engine service.
Composite heuristic scoring (popularity, quality, title relevance) and a
stable descending sort.
"""
import logging
import math
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel

from app.models.schemas import MediaItem, ScoredItem

logger = logging.getLogger(__name__)


class ScoringWeights(BaseModel):
    """Named scoring constants. Defaults reproduce the production ranking."""

    popularity_multiplier: float = 50.0
    quality_max_bonus: float = 20.0
    quality_min_votes: int = 100  # Quality applies only above this vote count
    contains_bonus: float = 30.0
    starts_with_bonus: float = 15.0
    exact_match_bonus: float = 20.0
    word_overlap_bonus: float = 5.0
    blend_rating_weight: float = 0.6
    blend_popularity_weight: float = 0.4


DEFAULT_WEIGHTS = ScoringWeights()


def damped_popularity(popularity: Optional[float]) -> float:
    """log(max(popularity, 1)); missing popularity counts as 1."""
    return math.log(max(popularity or 0.0, 1.0))


def log_popularity(popularity: Optional[float]) -> float:
    """Natural log without the floor at 1; missing or non-positive popularity counts as 0."""
    if not popularity or popularity <= 0:
        return 0.0
    return math.log(popularity)


def normalize_query(query: Optional[str]) -> Optional[str]:
    """Lower-case the query as typed; a blank query counts as no query."""
    if query is None or not query.strip():
        return None
    return query.lower()


# =============================================================================
# Scoring Strategy (Strategy Pattern)
# =============================================================================


class ScoringStrategy(ABC):
    """Abstract base class for scoring strategies."""

    name: str = "base"

    @abstractmethod
    def score(
        self,
        item: MediaItem,
        query: Optional[str],
        weights: ScoringWeights,
    ) -> float:
        """
        Calculate this strategy's contribution.

        Args:
            item: Candidate item
            query: Lower-cased search query, or None
            weights: Scoring constants
        """
        pass


class PopularityScoring(ScoringStrategy):
    """Logarithmically damped popularity."""

    name = "popularity"

    def score(self, item, query, weights):
        return damped_popularity(item.popularity) * weights.popularity_multiplier


class QualityScoring(ScoringStrategy):
    """Rating bonus, only for items with enough votes to be trusted."""

    name = "quality"

    def score(self, item, query, weights):
        if not item.vote_average or (item.vote_count or 0) <= weights.quality_min_votes:
            return 0.0
        return (item.vote_average / 10) * weights.quality_max_bonus


class TitleMatchScoring(ScoringStrategy):
    """Contains, starts-with and exact-match bonuses. They stack."""

    name = "title_match"

    def score(self, item, query, weights):
        if not query:
            return 0.0
        title = item.title.lower()
        bonus = 0.0
        if query in title:
            bonus += weights.contains_bonus
        if title.startswith(query):
            bonus += weights.starts_with_bonus
        if title == query:
            bonus += weights.exact_match_bonus
        return bonus


class WordOverlapScoring(ScoringStrategy):
    """One bonus per (query word, title word) pair where either contains the other."""

    name = "word_overlap"

    def score(self, item, query, weights):
        if not query:
            return 0.0
        title_words = item.title.lower().split()
        matches = 0
        for query_word in query.split():
            for title_word in title_words:
                if query_word in title_word or title_word in query_word:
                    matches += 1
        return matches * weights.word_overlap_bonus


class RatingBlendScoring(ScoringStrategy):
    """Rating-led blend used for curated platform catalogs."""

    name = "rating_blend"

    def score(self, item, query, weights):
        rating = item.vote_average or 0.0
        return (
            rating * weights.blend_rating_weight
            + log_popularity(item.popularity) * weights.blend_popularity_weight
        )


SEARCH_STRATEGIES: Tuple[ScoringStrategy, ...] = (
    PopularityScoring(),
    QualityScoring(),
    TitleMatchScoring(),
    WordOverlapScoring(),
)

BROWSE_STRATEGIES: Tuple[ScoringStrategy, ...] = (PopularityScoring(),)


# =============================================================================
# Ranking Engine
# =============================================================================


class RankingEngine:
    """
    Main ranking engine service.
    Scores candidates and returns them in a stable descending order.
    """

    def __init__(
        self,
        weights: Optional[ScoringWeights] = None,
        search_strategies: Optional[Sequence[ScoringStrategy]] = None,
        browse_strategies: Optional[Sequence[ScoringStrategy]] = None,
    ) -> None:
        """
        Initialize ranking engine.

        Args:
            weights: Scoring constants (default: production values)
            search_strategies: Strategies applied when a query is given
            browse_strategies: Strategies applied without a query
        """
        self._weights = weights or DEFAULT_WEIGHTS
        self._search_strategies = list(search_strategies or SEARCH_STRATEGIES)
        self._browse_strategies = list(browse_strategies or BROWSE_STRATEGIES)

    @property
    def weights(self) -> ScoringWeights:
        return self._weights

    def score(
        self,
        items: Sequence[MediaItem],
        query: Optional[str] = None,
        strategies: Optional[Sequence[ScoringStrategy]] = None,
    ) -> List[ScoredItem]:
        """Score items, sorted descending. Equal scores keep fetch order."""
        normalized = normalize_query(query)
        if strategies is None:
            strategies = self._search_strategies if normalized else self._browse_strategies

        scored = []
        for item in items:
            breakdown = {s.name: s.score(item, normalized, self._weights) for s in strategies}
            total = sum(breakdown.values())
            scored.append(ScoredItem(item=item, score=total, score_breakdown=breakdown))

        # sorted() is stable, including with reverse=True
        scored = sorted(scored, key=lambda s: s.score, reverse=True)

        logger.debug(
            f"Scored {len(scored)} items, query={normalized!r}, "
            f"strategies={[s.name for s in strategies]}"
        )
        return scored

    def rank(
        self,
        items: Sequence[MediaItem],
        query: Optional[str] = None,
        strategies: Optional[Sequence[ScoringStrategy]] = None,
    ) -> List[MediaItem]:
        """Return items ordered by composite score."""
        return [s.item for s in self.score(items, query, strategies)]
