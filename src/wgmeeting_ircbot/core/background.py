from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Optional

from .logging_utils import log_event


class TaskRegistry:
    """Fire-and-forget task tracker.

    Tasks run to completion on their own; the registry only keeps a strong
    reference so they are not garbage collected mid-flight, logs failures, and
    lets shutdown wait for whatever is still outstanding.
    """

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(
        self, coro: Coroutine[Any, Any, Any], *, name: Optional[str] = None
    ) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_event(
                self._logger,
                logging.ERROR,
                "background.task.failed",
                task=task.get_name(),
                exc=exc,
            )

    async def drain(self) -> None:
        """Wait until every task spawned so far (and any they spawn) is done."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
