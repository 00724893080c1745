"""Fire-and-forget usage logging."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Set

from novachat.core.storage import Storage

from .models import UsageRecord

logger = logging.getLogger(__name__)

UsageSink = Callable[[UsageRecord], None]


class UsageLogger:
    """Runs each write as a detached task; failures only reach the log.

    The sink is a blocking callable, so it is executed in a worker thread.
    Pending tasks are held here until they finish so they are not garbage
    collected mid-flight.
    """

    def __init__(self, sink: UsageSink) -> None:
        self._sink = sink
        self._pending: Set[asyncio.Task[None]] = set()

    def schedule(self, record: UsageRecord) -> None:
        try:
            task = asyncio.get_running_loop().create_task(asyncio.to_thread(self._sink, record))
        except RuntimeError as exc:  # no running loop
            logger.warning("Usage logging skipped for user %s: %s", record.user_id, exc)
            return
        self._pending.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Failed to record AI usage: %s", exc)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight writes, e.g. at shutdown or in tests."""

        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def storage_sink(storage: Storage) -> UsageSink:
    def _write(record: UsageRecord) -> None:
        storage.record_usage(record.user_id, record.message_length, record.response_length)

    return _write
