"""Concurrent fan-out that tolerates per-item failure"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

import structlog

from venturehub.errors import PartialHydrationFailure, RelayError

logger = structlog.get_logger()

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class GatherResult(Generic[T, R]):
    """Successes and failures of one fan-out batch"""
    succeeded: List[Tuple[T, R]] = field(default_factory=list)
    failed: List[PartialHydrationFailure] = field(default_factory=list)

    @property
    def values(self) -> List[R]:
        return [value for _, value in self.succeeded]


async def gather_partial(
    items: Iterable[T],
    fetch: Callable[[T], Awaitable[R]],
    key: Optional[Callable[[T], Any]] = None,
    label: str = "item",
) -> GatherResult[T, R]:
    """
    Run `fetch` for every item concurrently and wait for all of them.

    A failing item is recorded as a PartialHydrationFailure and logged; it
    never aborts the batch. Cancellation still propagates.
    """
    items = list(items)
    results = await asyncio.gather(*(fetch(item) for item in items), return_exceptions=True)

    batch: GatherResult[T, R] = GatherResult()
    for item, result in zip(items, results):
        if isinstance(result, Exception):
            item_key = key(item) if key else item
            details = result.details if isinstance(result, RelayError) else str(result)
            logger.warning(f"Could not hydrate {label}", key=item_key, error=details)
            batch.failed.append(PartialHydrationFailure(item_key, details))
        elif isinstance(result, BaseException):
            raise result
        else:
            batch.succeeded.append((item, result))
    return batch
