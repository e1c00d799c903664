import asyncio
from typing import Awaitable, Callable, Iterator, List, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY = 0.5


class BatchThrottle:
    """
    Fixed-window rate limiting: work is split into batches of ``batch_size``
    and callers pause ``delay_seconds`` between consecutive batches.

    With the defaults (5 per 0.5s) that is roughly 10 requests per second.
    No backoff, the delay is a scheduling hint rather than a guarantee.
    """

    def __init__(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay_seconds: float = DEFAULT_BATCH_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")
        self.batch_size = batch_size
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def batches(self, items: Sequence[T]) -> Iterator[List[T]]:
        for start in range(0, len(items), self.batch_size):
            yield list(items[start:start + self.batch_size])

    async def pause(self) -> None:
        if self.delay_seconds:
            await self._sleep(self.delay_seconds)
