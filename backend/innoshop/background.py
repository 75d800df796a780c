from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from .observability.logging import get_logger

log = get_logger("background")


class BackgroundTaskRunner:
    """
    Fire-and-forget side effects (emails, sibling-service notifications).

    Tasks are detached from the request that spawned them: cancelling the
    request does not cancel the task. Failures are logged, never raised.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, name: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(self._run(name, coro), name=name)
        # The loop only keeps weak references to tasks.
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, name: str, coro: Coroutine[Any, Any, Any]) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            log.warning("background_task_cancelled", task=name)
            raise
        except Exception as exc:
            log.error(
                "background_task_failed",
                task=name,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=exc,
            )
        else:
            log.debug("background_task_completed", task=name)

    async def drain(self, timeout: float | None = 10.0) -> None:
        """Wait for outstanding tasks; anything still running after `timeout` is cancelled."""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        for t in pending:
            t.cancel()
        if pending:
            log.warning("background_tasks_abandoned", count=len(pending))
            await asyncio.gather(*pending, return_exceptions=True)
