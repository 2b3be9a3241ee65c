"""
Structured fan-out helpers.
Every task runs to completion; failures are collected per task
instead of cancelling siblings or escaping the join.
"""
import asyncio
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    TypeVar,
)

from app.core.exceptions import AggregateFetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Outcome(Generic[T]):
    """Result of a single task: either a value or the exception it raised."""

    __slots__ = ("label", "value", "error")

    def __init__(
        self,
        label: str,
        value: Optional[T] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.label = label
        self.value = value
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        state = "ok" if self.ok else f"error={self.error!r}"
        return f"Outcome({self.label!r}, {state})"


class TaskSet:
    """
    Join primitive for concurrent provider calls.

    Tasks are registered with a label and started together by `join()`,
    which waits for all of them (barrier semantics) and returns one
    Outcome per label in registration order.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._labels: List[str] = []
        self._awaitables: List[Awaitable[Any]] = []

    def add(self, label: str, awaitable: Awaitable[Any]) -> None:
        if label in self._labels:
            raise ValueError(f"Duplicate task label: {label}")
        self._labels.append(label)
        self._awaitables.append(awaitable)

    def __len__(self) -> int:
        return len(self._labels)

    async def join(self) -> Dict[str, Outcome]:
        results = await asyncio.gather(*self._awaitables, return_exceptions=True)

        outcomes: Dict[str, Outcome] = {}
        for label, result in zip(self._labels, results):
            if isinstance(result, Exception):
                logger.warning(
                    f"Task failed: set={self.name}, task={label}, error={result}",
                    extra={"section": self.name},
                )
                outcomes[label] = Outcome(label, error=result)
            elif isinstance(result, BaseException):
                # Cancellation and interpreter exits are not task failures
                raise result
            else:
                outcomes[label] = Outcome(label, value=result)
        return outcomes

    async def join_values(self) -> Dict[str, Any]:
        """
        Join and return the successful values by label.

        Raises:
            AggregateFetchError: if every task failed
        """
        outcomes = await self.join()
        failed = [o.label for o in outcomes.values() if not o.ok]
        if outcomes and len(failed) == len(outcomes):
            raise AggregateFetchError(section=self.name, failed_sources=failed)
        return {label: o.value for label, o in outcomes.items() if o.ok}


async def enrich_all(
    items: Sequence[T],
    fetch: Callable[[T], Awaitable[T]],
    name: str = "enrich",
) -> List[T]:
    """
    Enrich every item concurrently.

    A failed fetch resolves to the original item, so one bad record never
    aborts the batch.
    """
    tasks = TaskSet(name)
    for index, item in enumerate(items):
        tasks.add(str(index), fetch(item))

    outcomes = await tasks.join()
    enriched = []
    for index, item in enumerate(items):
        outcome = outcomes[str(index)]
        enriched.append(outcome.value if outcome.ok else item)
    return enriched
