"""
Candidate list assembly: ordered concatenation, deduplication and
exclusion filtering. All functions are pure and return new lists.
"""
from datetime import date
from typing import Callable, Hashable, Iterable, List, Optional, Sequence

from app.models.schemas import MediaItem

ExclusionPredicate = Callable[[MediaItem], bool]
KeyFunc = Callable[[MediaItem], Hashable]


def identity_key(item: MediaItem) -> Hashable:
    return item.key


def aggregate(sources: Sequence[Iterable[MediaItem]]) -> List[MediaItem]:
    """
    Concatenate result sets in caller priority order.
    Relative order within each source is preserved; nothing is dropped.
    """
    combined: List[MediaItem] = []
    for source in sources:
        combined.extend(source)
    return combined


def dedupe(items: Iterable[MediaItem], key: Optional[KeyFunc] = None) -> List[MediaItem]:
    """Keep the first occurrence of each key, preserving order."""
    key = key or identity_key
    seen = set()
    unique = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        unique.append(item)
    return unique


def filter_excluded(
    items: Iterable[MediaItem],
    predicates: Iterable[ExclusionPredicate],
) -> List[MediaItem]:
    """Keep items that match none of the exclusion predicates."""
    predicates = list(predicates)
    return [item for item in items if not any(p(item) for p in predicates)]


# =============================================================================
# Exclusion predicates
# =============================================================================


def genre_in(genre_ids: Iterable[int]) -> ExclusionPredicate:
    """Exclude items carrying any blacklisted genre."""
    blacklist = frozenset(genre_ids)

    def predicate(item: MediaItem) -> bool:
        return not blacklist.isdisjoint(item.genre_ids)

    return predicate


def language_not_in(languages: Iterable[str]) -> ExclusionPredicate:
    """Exclude items whose original language is outside the allow-list."""
    allowed = frozenset(languages)

    def predicate(item: MediaItem) -> bool:
        return item.original_language not in allowed

    return predicate


def released_before(threshold: date) -> ExclusionPredicate:
    """Exclude items released strictly before `threshold`; undated items pass."""

    def predicate(item: MediaItem) -> bool:
        return item.release_date is not None and item.release_date < threshold

    return predicate


def released_after(threshold: date) -> ExclusionPredicate:
    """Exclude items released strictly after `threshold`; undated items pass."""

    def predicate(item: MediaItem) -> bool:
        return item.release_date is not None and item.release_date > threshold

    return predicate
