"""Dispatch resize callbacks at explicit checkpoints of the application."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from anywinch.dispatchers.base import Dispatcher


if TYPE_CHECKING:
    from collections.abc import Callable

    from anywinch.trap import WakeupPipe


class CheckpointDispatcher(Dispatcher):
    """Run the callback only when the application calls `poll()`.

    Suited to render loops that already have a natural point between frames
    where it is safe to recompute the layout.
    """

    def __init__(
        self,
        pipe: WakeupPipe,
        invoke: Callable[[], Any],
        raise_exceptions: bool = False,
    ) -> None:
        super().__init__(pipe, invoke)
        self.raise_exceptions = raise_exceptions
        self._running = False

    def start(self) -> None:
        self.pipe.set_read_blocking(False)

    def stop(self) -> None:
        self.pipe.close()

    def poll(self) -> bool:
        """Run the callback once if any notification is pending.

        Returns:
            True if the callback ran.
        """
        if self._running or not self.pipe.drain():
            return False
        self._running = True
        try:
            if not self.raise_exceptions:
                self._run_callback()
                return True
            self._report_write_errors()
            self.invocations += 1
            try:
                self.invoke()
            except Exception:
                self.failures += 1
                raise
        finally:
            self._running = False
        return True
