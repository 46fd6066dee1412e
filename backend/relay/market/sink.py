"""Fire-and-forget delivery of price snapshots to an external event sink."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from .models import PriceState

logger = logging.getLogger(__name__)

EventSink = Callable[[dict[str, PriceState]], Awaitable[None] | None]


def log_price_event(snapshot: dict[str, PriceState]) -> None:
    """Default sink: just log what changed hands."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Price event: %s",
            ", ".join(f"{s}={state.formatted_price}" for s, state in snapshot.items()),
        )


class EventNotifier:
    """Hands price snapshots to a sink without ever blocking the caller.

    notify() drops the snapshot into a bounded queue; a detached worker task
    drains it and calls the sink. When the queue is full the oldest pending
    snapshot is discarded, since each snapshot supersedes the ones before it.
    Sink failures are logged and otherwise ignored.
    """

    def __init__(self, sink: EventSink = log_price_event, maxsize: int = 100) -> None:
        self._sink = sink
        self._queue: asyncio.Queue[dict[str, PriceState]] = asyncio.Queue(maxsize=maxsize)
        self._task: asyncio.Task | None = None
        self._dropped = 0

    @property
    def dropped(self) -> int:
        """Number of snapshots discarded because the sink fell behind."""
        return self._dropped

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def notify(self, snapshot: dict[str, PriceState]) -> None:
        try:
            self._queue.put_nowait(snapshot)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self._queue.task_done()
            self._queue.put_nowait(snapshot)
            self._dropped += 1
            if self._dropped % 100 == 1:
                logger.warning("Event sink falling behind: %d snapshots dropped", self._dropped)

    async def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._run(), name="event-sink")

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def _run(self) -> None:
        while True:
            snapshot = await self._queue.get()
            try:
                result = self._sink(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Event sink failed")
            finally:
                self._queue.task_done()
