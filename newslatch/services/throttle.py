"""
Batch throttle cho outbound scraping: chạy tối đa `concurrency` call mỗi batch,
nghỉ `delay_seconds` giữa các batch. backoff_factor > 1: batch có lỗi => delay tăng
(tới max_delay_seconds), batch sạch => reset về delay gốc.
"""
import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Optional, TypeVar, Union

from newslatch.config import Settings
from newslatch.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BatchThrottle:
    """Injectable rate limiter; `sleep` thay được trong test."""

    def __init__(
        self,
        concurrency: int = 3,
        delay_seconds: float = 1.0,
        backoff_factor: float = 1.0,
        max_delay_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.concurrency = concurrency
        self.delay_seconds = max(0.0, delay_seconds)
        self.backoff_factor = max(1.0, backoff_factor)
        self.max_delay_seconds = max_delay_seconds
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "BatchThrottle":
        return cls(
            concurrency=settings.image_extract_concurrency,
            delay_seconds=settings.image_extract_delay_seconds,
            backoff_factor=settings.image_extract_backoff_factor,
            max_delay_seconds=settings.image_extract_max_delay_seconds,
        )

    def _next_delay(self, current: float, had_failures: bool) -> float:
        if not had_failures or self.backoff_factor == 1.0:
            return self.delay_seconds
        grown = current * self.backoff_factor
        if self.max_delay_seconds is not None:
            grown = min(grown, self.max_delay_seconds)
        return grown

    async def run(
        self,
        items: Sequence[T],
        fn: Callable[[T], Awaitable[R]],
    ) -> list[Union[R, BaseException]]:
        """
        fn(item) cho mọi item, giữ thứ tự input. Exception của từng call được trả về
        trong list (không raise) để batch không bị hủy.
        """
        results: list[Union[R, BaseException]] = []
        delay = self.delay_seconds
        total = len(items)
        for start in range(0, total, self.concurrency):
            batch = items[start:start + self.concurrency]
            batch_results = await asyncio.gather(*(fn(item) for item in batch), return_exceptions=True)
            results.extend(batch_results)
            failures = sum(1 for r in batch_results if isinstance(r, BaseException))
            if failures:
                logger.info("throttle.batch_failures", batch_start=start, failures=failures)
            if start + self.concurrency < total:
                delay = self._next_delay(delay, failures > 0)
                if delay > 0:
                    await self._sleep(delay)
        return results
