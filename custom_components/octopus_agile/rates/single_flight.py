"""Per-key request coalescing for rate fetches."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)
_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")

T = TypeVar("T")


class OctopusAgileSingleFlight(Generic[T]):
    """
    Run at most one producer per key at any time.

    The first caller for a key starts the producer as a task (the fetch token).
    Callers arriving while that task runs join it and receive the same result
    or the same exception. The token is dropped as soon as the task finishes,
    so failures are never cached: the next call starts over.

    Callers await the task through asyncio.shield(). Cancelling any caller,
    including the one that started the work, only detaches that caller.

    Example:
        single_flight = OctopusAgileSingleFlight()
        rates = await single_flight.execute("E-1R-AGILE-24-10-01-H", fetch_rates)

    """

    def __init__(self, *, lock: asyncio.Lock | None = None) -> None:
        """
        Initialize the token table.

        Args:
            lock: Lock guarding the token table. Pass the lock that also guards
                  other shared state to keep a single mutual-exclusion domain.

        """
        self._lock = lock or asyncio.Lock()
        self._tokens: dict[str, asyncio.Task[T]] = {}

    def in_flight(self, key: str) -> bool:
        """Return True if a producer for key is currently running."""
        return key in self._tokens

    @property
    def in_flight_keys(self) -> list[str]:
        """Return keys with a running producer."""
        return list(self._tokens)

    async def execute(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        """
        Run producer for key, or join the run already in progress.

        Args:
            key: Deduplication key (the tariff code).
            producer: Zero-argument coroutine function. Only invoked if no run
                      for key is in progress.

        Returns:
            The producer's result.

        Raises:
            Any exception raised by the producer, delivered to every joined caller.

        """
        async with self._lock:
            token = self._tokens.get(key)
            if token is None:
                token = asyncio.create_task(self._run(key, producer), name=f"octopus_agile_fetch_{key}")
                token.add_done_callback(_consume_exception)
                self._tokens[key] = token
                _LOGGER_DETAILS.debug("Started fetch for %s", key)
            else:
                _LOGGER.debug("Joining fetch already in progress for %s", key)

        return await asyncio.shield(token)

    async def _run(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        try:
            return await producer()
        finally:
            async with self._lock:
                if self._tokens.get(key) is asyncio.current_task():
                    del self._tokens[key]
            _LOGGER_DETAILS.debug("Fetch for %s finished, token released", key)

    async def async_cancel_all(self) -> None:
        """Cancel every running producer (used on unload)."""
        async with self._lock:
            tokens = list(self._tokens.values())
            self._tokens.clear()

        for token in tokens:
            token.cancel()
        await asyncio.gather(*tokens, return_exceptions=True)


def _consume_exception(task: asyncio.Task) -> None:
    """Mark the result as retrieved when every caller detached before completion."""
    if not task.cancelled():
        task.exception()
