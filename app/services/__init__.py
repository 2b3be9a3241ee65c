"""Services package - business logic layer."""
from .aggregation import (
    aggregate,
    dedupe,
    filter_excluded,
    genre_in,
    language_not_in,
    released_after,
    released_before,
)
from .catalog import STREAMING_PLATFORMS, CatalogService, StreamingPlatform
from .ranking import (
    PopularityScoring,
    QualityScoring,
    RankingEngine,
    RatingBlendScoring,
    ScoringStrategy,
    ScoringWeights,
    TitleMatchScoring,
    WordOverlapScoring,
)
from .trailers import TrailerResolver, TrailerScoringWeights

__all__ = [
    "CatalogService",
    "PopularityScoring",
    "QualityScoring",
    "RankingEngine",
    "RatingBlendScoring",
    "STREAMING_PLATFORMS",
    "ScoringStrategy",
    "ScoringWeights",
    "StreamingPlatform",
    "TitleMatchScoring",
    "TrailerResolver",
    "TrailerScoringWeights",
    "WordOverlapScoring",
    "aggregate",
    "dedupe",
    "filter_excluded",
    "genre_in",
    "language_not_in",
    "released_after",
    "released_before",
]
