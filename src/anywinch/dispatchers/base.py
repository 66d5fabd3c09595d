"""Base dispatcher interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable

    from anywinch.trap import WakeupPipe


logger = logging.getLogger(__name__)


class Dispatcher(ABC):
    """Runs the resize callback on a safe execution context.

    A dispatcher takes ownership of the wakeup pipe once started and is
    responsible for closing it when stopped.
    """

    def __init__(self, pipe: WakeupPipe, invoke: Callable[[], Any]) -> None:
        self.pipe = pipe
        self.invoke = invoke
        self.invocations = 0
        self.failures = 0
        self._reported_write_errors = 0

    @abstractmethod
    def start(self) -> None:
        """Begin consuming wakeups."""

    @abstractmethod
    def stop(self) -> None:
        """Stop consuming wakeups and release the pipe."""

    def _run_callback(self) -> Any:
        """Invoke the callback once, logging instead of propagating errors."""
        self._report_write_errors()
        self.invocations += 1
        try:
            return self.invoke()
        except Exception:
            self.failures += 1
            logger.exception("Resize callback failed")
            return None

    def _report_write_errors(self) -> None:
        errors = self.pipe.write_errors
        if errors != self._reported_write_errors:
            logger.debug(
                "Signal trap failed to record %d notification(s)",
                errors - self._reported_write_errors,
            )
            self._reported_write_errors = errors
