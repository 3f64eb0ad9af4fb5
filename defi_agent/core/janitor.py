"""
Periodic cache sweeper.

Library objects never start timers of their own. The host process creates
one ``CacheJanitor`` over whatever exposes ``clear_expired()`` (an Agent, a
plugin, a provider, a bare cache) and starts/stops it with its own lifecycle.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Protocol

from ..config import settings


class Expirable(Protocol):
    def clear_expired(self) -> int: ...


class CacheJanitor:
    def __init__(
        self,
        targets: Iterable[Expirable],
        interval_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.targets: List[Expirable] = list(targets)
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.cache_cleanup_interval_seconds
        )
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.logger = logger or logging.getLogger(__name__)
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        """Run ``clear_expired()`` on every target; one failing target does not stop the rest."""
        removed = 0
        for target in self.targets:
            try:
                removed += target.clear_expired()
            except Exception as exc:  # noqa: BLE001
                self.logger.warning(f"Cache sweep failed for {type(target).__name__}: {exc}", exc_info=True)
        if removed:
            self.logger.info(f"Cache sweep removed {removed} expired entries")
        return removed

    async def start(self) -> None:
        if self.is_running:
            return
        self.logger.info(f"Cache janitor starting (every {self.interval_seconds}s, {len(self.targets)} targets)")
        self._task = asyncio.create_task(self._run_loop(), name="cache-janitor")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info("Cache janitor stopped")

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.sweep_once()
