"""Self-pipe used as the raw signal trap.

The trap installed with `signal.signal` writes a single byte into a pipe and
returns. Everything else (draining, logging, running the callback) happens
on the reading side, which belongs to a dispatcher.
"""

from __future__ import annotations

import os
import select
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from types import FrameType


WAKEUP_BYTE = b"\x00"


class WakeupPipe:
    """Pipe pair connecting the signal trap to a dispatcher."""

    __slots__ = ("_read_chunk", "_read_fd", "_write_fd", "received", "write_errors")

    def __init__(self, read_chunk: int = 512) -> None:
        self._read_fd, self._write_fd = os.pipe()
        os.set_blocking(self._write_fd, False)
        self._read_chunk = read_chunk
        self.received = 0
        self.write_errors = 0

    @property
    def read_fd(self) -> int:
        return self._read_fd

    @property
    def closed(self) -> bool:
        return self._read_fd < 0

    def trap(self, signum: int, frame: FrameType | None) -> None:
        """Signal handler. Only records that a notification arrived."""
        self.received += 1
        try:
            os.write(self._write_fd, WAKEUP_BYTE)
        except BlockingIOError:
            # Pipe full: a wakeup is already pending.
            pass
        except OSError:
            self.write_errors += 1

    def wake(self) -> None:
        """Write a wakeup byte from ordinary code."""
        if self._write_fd < 0:
            return
        try:
            os.write(self._write_fd, WAKEUP_BYTE)
        except OSError:
            # Full, or closed by the reader in the meantime.
            pass

    def set_read_blocking(self, blocking: bool) -> None:
        os.set_blocking(self._read_fd, blocking)

    def drain(self) -> int:
        """Consume every pending wakeup byte without blocking.

        Returns:
            Number of bytes consumed, 0 if nothing was pending.
        """
        if self.closed:
            return 0
        total = 0
        while True:
            try:
                data = os.read(self._read_fd, self._read_chunk)
            except BlockingIOError:
                return total
            if not data:
                return total
            total += len(data)

    def wait(self) -> int | None:
        """Block until a wakeup arrives, then consume every pending byte.

        The read end must be non-blocking.

        Returns:
            Number of bytes consumed, or None once the pipe is closed.
        """
        while not self.closed:
            try:
                select.select([self._read_fd], [], [])
            except (OSError, ValueError):
                return None
            try:
                data = os.read(self._read_fd, self._read_chunk)
            except BlockingIOError:
                continue
            except OSError:
                return None
            if not data:
                return None
            return len(data) + self.drain()
        return None

    def close(self) -> None:
        """Close both ends. Safe to call more than once."""
        write_fd, self._write_fd = self._write_fd, -1
        read_fd, self._read_fd = self._read_fd, -1
        for fd in (write_fd, read_fd):
            if fd >= 0:
                os.close(fd)
