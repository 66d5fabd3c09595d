"""Dispatch resize callbacks on an asyncio event loop."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any

from anywinch.dispatchers.base import Dispatcher
from anywinch.errors import PlatformUnsupportedError
from anywinch.platform import SIGNAL_NAME


if TYPE_CHECKING:
    from collections.abc import Callable

    from anywinch.trap import WakeupPipe


logger = logging.getLogger(__name__)

# Seconds to wait for a loop on another thread to start watching the pipe.
START_TIMEOUT = 5.0


class EventLoopDispatcher(Dispatcher):
    """Watch the wakeup pipe with `loop.add_reader`.

    Plain callbacks run directly in the reader callback. Coroutine callbacks
    are scheduled as tasks; while one is still running, further
    notifications set a single pending flag that starts one more task
    when the current one finishes.
    """

    def __init__(
        self,
        pipe: WakeupPipe,
        invoke: Callable[[], Any],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__(pipe, invoke)
        self._loop = loop
        self._task: asyncio.Task[Any] | None = None
        self._pending = False
        self._stopped = False

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    def start(self) -> None:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self.pipe.set_read_blocking(False)
        if not _runs_elsewhere(self._loop):
            self._watch()
            return
        future = asyncio.run_coroutine_threadsafe(self._watch_async(), self._loop)
        try:
            future.result(START_TIMEOUT)
        except TimeoutError:
            future.cancel()
            raise

    def stop(self) -> None:
        self._stopped = True
        loop = self._loop
        if loop is None or loop.is_closed():
            self.pipe.close()
            return
        if not _runs_elsewhere(loop):
            self._unwatch()
            return
        try:
            loop.call_soon_threadsafe(self._unwatch)
        except RuntimeError:
            # Loop closed in the meantime; nothing watches the pipe anymore.
            self.pipe.close()

    def _watch(self) -> None:
        assert self._loop is not None
        try:
            self._loop.add_reader(self.pipe.read_fd, self._on_readable)
        except NotImplementedError as e:
            msg = f"{type(self._loop).__name__} cannot watch file descriptors"
            raise PlatformUnsupportedError(
                msg, signal_name=SIGNAL_NAME, reason="no-add-reader"
            ) from e

    async def _watch_async(self) -> None:
        self._watch()

    def _unwatch(self) -> None:
        self._pending = False
        loop = self._loop
        if loop is not None and not self.pipe.closed and not loop.is_closed():
            loop.remove_reader(self.pipe.read_fd)
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.pipe.close()

    def _on_readable(self) -> None:
        if not self.pipe.drain() or self._stopped:
            return
        if self._task is not None and not self._task.done():
            self._pending = True
            return
        self._fire()

    def _fire(self) -> None:
        result = self._run_callback()
        if not inspect.isawaitable(result):
            return
        assert self._loop is not None
        self._task = self._loop.create_task(_await(result))
        self._task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        if not task.cancelled() and (exc := task.exception()) is not None:
            self.failures += 1
            logger.error("Resize callback failed", exc_info=exc)
        if self._pending and not self._stopped:
            self._pending = False
            self._fire()


async def _await(awaitable: Any) -> Any:
    return await awaitable


def _runs_elsewhere(loop: asyncio.AbstractEventLoop) -> bool:
    """Whether `loop` is running on a thread other than the current one."""
    if not loop.is_running():
        return False
    try:
        return asyncio.get_running_loop() is not loop
    except RuntimeError:
        return True
