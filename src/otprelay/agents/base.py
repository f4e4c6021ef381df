"""Common agent abstractions."""

from __future__ import annotations

import abc
import asyncio
from typing import Optional

from otprelay.utils.logging import get_logger


class BaseAgent(abc.ABC):
    """Abstract agent with lifecycle helpers."""

    def __init__(self, *, name: Optional[str] = None) -> None:
        self._name = name or self.__class__.__name__
        self.logger = get_logger(self._name)
        self._task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    @property
    def task(self) -> Optional[asyncio.Task[None]]:
        return self._task

    async def start(self) -> None:
        if self._task and not self._task.done():
            return
        self.logger.info("Starting agent")
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_wrapper(), name=self._name)

    def request_stop(self) -> None:
        """Ask the run loop to finish; safe to call from inside the loop."""
        self._stop_event.set()

    async def stop(self) -> None:
        self.logger.info("Stopping agent")
        self.request_stop()
        if self._task:
            await self._task
            self._task = None

    async def _run_wrapper(self) -> None:
        try:
            await self.setup()
            await self.run()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pragma: no cover - ensure errors are logged
            self.logger.exception("Unhandled exception: %s", exc)
        finally:
            await self.teardown()

    def should_stop(self) -> bool:
        return self._stop_event.is_set()

    async def wait(self, seconds: float) -> bool:
        """Sleep for ``seconds`` unless a stop is requested first.

        Returns True when the wait ended because of a stop request.
        """
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def setup(self) -> None:
        """Optional hook executed once before run loop."""

    async def teardown(self) -> None:
        """Optional hook executed once after run loop."""

    @abc.abstractmethod
    async def run(self) -> None:
        """Main agent body."""
