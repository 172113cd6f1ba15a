# Backend/rss_digest/core/domain_limiter.py
"""
Per-hostname admission control.

Bounds the number of in-flight requests against a single origin independent
of the global worker pool size, so one host with many feeds never sees more
than `max_per_domain` concurrent requests from us.

State is created lazily per domain and dropped by `reset()`; the category
pipeline resets it before every category, so the bound holds within one
category's execution only.
"""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Deque, Dict
from urllib.parse import urlparse

DEFAULT_DOMAIN_CONCURRENCY = 3


def get_domain(url: str) -> str:
    """Hostname of `url`; the raw value when it does not parse to one."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return url
    return hostname or url


@dataclass
class DomainLimiterState:
    running: int = 0
    queue: Deque[asyncio.Future] = field(default_factory=deque)


class DomainLimiter:
    def __init__(self, max_per_domain: int = DEFAULT_DOMAIN_CONCURRENCY) -> None:
        self.max_per_domain = max(1, max_per_domain)
        self._states: Dict[str, DomainLimiterState] = {}

    def _state(self, domain: str) -> DomainLimiterState:
        state = self._states.get(domain)
        if state is None:
            state = DomainLimiterState()
            self._states[domain] = state
        return state

    async def acquire(self, domain: str) -> None:
        state = self._state(domain)
        if state.running < self.max_per_domain and not state.queue:
            state.running += 1
            return

        waiter: asyncio.Future = asyncio.get_running_loop().create_future()
        state.queue.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Slot was handed over just before the cancellation landed.
                self.release(domain)
            else:
                try:
                    state.queue.remove(waiter)
                except ValueError:
                    pass
            raise

    def release(self, domain: str) -> None:
        state = self._states.get(domain)
        if state is None or state.running <= 0:
            # Released after a reset, nothing left to free.
            return
        while state.queue:
            waiter = state.queue.popleft()
            if not waiter.done():
                # Hand the slot over directly; `running` stays the same.
                waiter.set_result(None)
                return
        state.running -= 1

    @asynccontextmanager
    async def slot(self, domain: str) -> AsyncIterator[None]:
        await self.acquire(domain)
        try:
            yield
        finally:
            self.release(domain)

    def reset(self) -> None:
        self._states.clear()

    def running(self, domain: str) -> int:
        state = self._states.get(domain)
        return state.running if state else 0

    def waiting(self, domain: str) -> int:
        state = self._states.get(domain)
        return len(state.queue) if state else 0
