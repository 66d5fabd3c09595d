"""Dispatch resize callbacks on a dedicated worker thread."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from anywinch.dispatchers.base import Dispatcher


if TYPE_CHECKING:
    from collections.abc import Callable

    from anywinch.trap import WakeupPipe


logger = logging.getLogger(__name__)


class ThreadDispatcher(Dispatcher):
    """Block on the wakeup pipe in a daemon thread and run the callback there.

    Every read drains whatever the trap wrote since the last one, so a burst
    of notifications that arrives while the callback runs collapses into a
    single follow-up invocation.
    """

    def __init__(
        self,
        pipe: WakeupPipe,
        invoke: Callable[[], Any],
        name: str = "anywinch-dispatch",
        join_timeout: float = 1.0,
    ) -> None:
        super().__init__(pipe, invoke)
        self.name = name
        self.join_timeout = join_timeout
        self._stopping = False
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self.pipe.set_read_blocking(False)
        self._thread = threading.Thread(target=self._pump, name=self.name, daemon=True)
        self._thread.start()

    def _pump(self) -> None:
        try:
            while not self._stopping:
                if self.pipe.wait() is None:
                    break
                if self._stopping:
                    break
                self._run_callback()
        finally:
            # The reader closes the pipe so its fd is never reused under a blocked read.
            self.pipe.close()
            logger.debug("Resize dispatch thread %r exited", self.name)

    def stop(self) -> None:
        thread = self._thread
        if thread is None:
            self.pipe.close()
            return
        self._stopping = True
        self.pipe.wake()
        if thread is threading.current_thread():
            return
        thread.join(self.join_timeout)
        if thread.is_alive():
            logger.warning(
                "Resize dispatch thread %r still busy after %.1fs, leaving it to exit",
                self.name,
                self.join_timeout,
            )
