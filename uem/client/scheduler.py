"""
Timer abstraction for retry backoff, so tests can run without waiting.
"""

import asyncio
from abc import ABC, abstractmethod


class Scheduler(ABC):

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        ...


class AsyncioScheduler(Scheduler):

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
