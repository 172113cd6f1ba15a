# Backend/rss_digest/core/task_runner.py
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


async def run_bounded(operations: Sequence[Operation[T]], limit: int) -> List[T]:
    """
    Run zero-argument async operations with a fixed pool of `min(limit, N)` workers.

    Workers pull `(index, operation)` pairs off a shared queue and store each
    result at its input index, so `results[i]` always belongs to
    `operations[i]` regardless of completion order.

    Operations are expected to turn their own failures into data. An exception
    that escapes an operation propagates out of this call.
    """
    total = len(operations)
    if total == 0:
        return []

    queue: asyncio.Queue[Tuple[int, Operation[T]]] = asyncio.Queue()
    for index, operation in enumerate(operations):
        queue.put_nowait((index, operation))

    results: List[Optional[T]] = [None] * total

    async def worker() -> None:
        while True:
            try:
                index, operation = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            results[index] = await operation()

    worker_count = min(max(1, limit), total)
    workers = [asyncio.ensure_future(worker()) for _ in range(worker_count)]
    try:
        await asyncio.gather(*workers)
    except BaseException:
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        raise
    return results  # type: ignore[return-value]
