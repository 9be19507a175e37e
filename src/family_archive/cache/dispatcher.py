from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set


class PushDispatcher:
    """
    Runs push jobs as asyncio tasks, ordered per key.

    A job submitted for a set of keys starts only after the previous job for
    each of those keys has finished, so writes for one entity reach the store
    in submission order. Jobs for disjoint keys run concurrently. Jobs are
    expected to handle their own errors.
    """

    def __init__(self) -> None:
        self._tails: Dict[str, asyncio.Task] = {}
        self._task_keys: Dict[asyncio.Task, List[str]] = {}

    @property
    def pending(self) -> int:
        return len(self._task_keys)

    def submit(
        self,
        keys: Iterable[str],
        job: Callable[[], Awaitable[None]],
        *,
        name: Optional[str] = None,
    ) -> asyncio.Task:
        """Schedule ``job``; must be called from inside the running loop."""
        loop = asyncio.get_running_loop()
        key_list = list(dict.fromkeys(keys))
        waits: Set[asyncio.Task] = {
            self._tails[k] for k in key_list if k in self._tails and not self._tails[k].done()
        }

        async def run() -> None:
            if waits:
                await asyncio.gather(*waits, return_exceptions=True)
            await job()

        task = loop.create_task(run(), name=name)
        for k in key_list:
            self._tails[k] = task
        self._task_keys[task] = key_list
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        for k in self._task_keys.pop(task, []):
            if self._tails.get(k) is task:
                del self._tails[k]

    async def flush(self) -> None:
        """Wait until every submitted job, including ones queued meanwhile, is done."""
        while True:
            running = [t for t in self._task_keys if not t.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)
