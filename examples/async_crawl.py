"""
Async crawl - AsyncTaskGroup with retry_async and a handler chain

This example demonstrates:
- AsyncTaskGroup launching coroutine functions on one loop
- retry_async() backing off without blocking other tasks
- handle_result().on().otherwise() to react to the aggregate

## Run with
```bash
PYTHONPATH=src python examples/async_crawl.py
```
"""

import asyncio
import random

from safezone import (
    AsyncTaskGroup,
    CancellationSignal,
    RetryCancelled,
    RetryPolicy,
    handle_result,
    retry_async,
)

POLICY = RetryPolicy(max_attempts=4, initial_delay=0.05)


async def fetch(page: int) -> str:
    await asyncio.sleep(random.uniform(0.01, 0.05))
    if random.random() < 0.5:
        raise TimeoutError(f"page {page} timed out")
    return f"<html>page {page}</html>"


async def main():
    signal = CancellationSignal()
    pages: dict[int, str] = {}

    async def crawl(page: int):
        outcome = await retry_async(signal, lambda: fetch(page), POLICY)
        if outcome.is_ok():
            pages[page] = outcome.value
        return outcome

    group = AsyncTaskGroup(name="crawl")
    for page in range(10):
        group.launch(lambda page=page: crawl(page))

    outcome = await group.wait()
    print(f"fetched {len(pages)} of 10 pages")

    (
        handle_result(outcome)
        .on(RetryCancelled, lambda e: print(f"crawl was cancelled: {e}"))
        .otherwise(lambda e: print(e))
    )


if __name__ == "__main__":
    asyncio.run(main())
