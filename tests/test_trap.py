"""Tests for the self-pipe signal trap."""

from __future__ import annotations

import os
import signal
import sys

import pytest

from anywinch.trap import WakeupPipe


pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX pipes only")


@pytest.fixture
def pipe():
    """Create a wakeup pipe with a non-blocking read end."""
    pipe = WakeupPipe()
    pipe.set_read_blocking(False)
    yield pipe
    pipe.close()


def test_trap_records_notification(pipe: WakeupPipe):
    """Test that the trap writes a byte that drain() consumes."""
    pipe.trap(signal.SIGWINCH, None)

    assert pipe.received == 1
    assert pipe.drain() == 1
    assert pipe.drain() == 0


def test_burst_drains_at_once(pipe: WakeupPipe):
    """Test that several notifications are consumed by a single drain."""
    for _ in range(5):
        pipe.trap(signal.SIGWINCH, None)

    assert pipe.drain() == 5  # noqa: PLR2004
    assert pipe.drain() == 0


def test_trap_on_full_pipe_does_not_raise(pipe: WakeupPipe):
    """Test that a full pipe is treated as an already pending wakeup."""
    os.set_blocking(pipe._write_fd, False)
    while True:
        try:
            os.write(pipe._write_fd, b"\x00" * 4096)
        except BlockingIOError:
            break

    pipe.trap(signal.SIGWINCH, None)

    assert pipe.received == 1
    assert pipe.write_errors == 0
    assert pipe.drain() > 0


def test_trap_after_close_counts_error():
    """Test that a trap racing close() fails silently."""
    pipe = WakeupPipe()
    pipe.close()

    pipe.trap(signal.SIGWINCH, None)

    assert pipe.received == 1
    assert pipe.write_errors == 1


def test_close_is_idempotent():
    """Test closing twice and reading from a closed pipe."""
    pipe = WakeupPipe()
    pipe.close()
    pipe.close()

    assert pipe.closed
    assert pipe.wait() is None
    assert pipe.drain() == 0
    pipe.wake()


def test_wait_consumes_everything_pending():
    """Test that one wait() empties the pipe regardless of the chunk size."""
    small = WakeupPipe(read_chunk=1)
    small.set_read_blocking(False)
    try:
        for _ in range(600):
            small.trap(signal.SIGWINCH, None)

        assert small.wait() == 600  # noqa: PLR2004
        assert small.drain() == 0
    finally:
        small.close()


def test_wait_returns_none_on_eof(pipe: WakeupPipe):
    """Test that a closed write end ends the wait."""
    os.close(pipe._write_fd)
    pipe._write_fd = -1

    assert pipe.wait() is None


def test_wake_after_close_is_silent():
    """Test that waking a pipe the reader already closed does not raise."""
    pipe = WakeupPipe()
    pipe.close()
    # Stale descriptor left behind when the reader closes between check and write
    pipe._write_fd = 1_000_000

    pipe.wake()
