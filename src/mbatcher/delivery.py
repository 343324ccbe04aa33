"""
Delivery strategies.

A delivery strategy decides how the coroutine that runs one batch is driven
and how its results reach the caller. `SynchronousDelivery` blocks the
calling thread until every request has finished and returns the mapping.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Hashable
from typing import Dict, TypeVar

from mbatcher.result import ResultEntry

Results = Dict[Hashable, ResultEntry]
T = TypeVar("T")


class Delivery(ABC):
    @abstractmethod
    def deliver(self, run: Callable[[], Awaitable[Results]]) -> Results:
        """Drive `run()` to completion and hand back its results."""


class SynchronousDelivery(Delivery):
    """Runs the batch on a fresh event loop and waits for it."""

    def deliver(self, run: Callable[[], Awaitable[Results]]) -> Results:
        return asyncio.run(_await(run))


async def _await(run: Callable[[], Awaitable[T]]) -> T:
    return await run()
