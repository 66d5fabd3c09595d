"""Platform probing for the terminal resize signal."""

from __future__ import annotations

import os
import signal
import sys

from anywinch.errors import PlatformUnsupportedError


SIGNAL_NAME = "SIGWINCH"

# Builds that ship a `signal` module but never deliver asynchronous signals.
UNSUPPORTED_PLATFORMS = frozenset({"emscripten", "wasi"})


def resize_signal() -> signal.Signals:
    """Return the window-change signal of this platform.

    Raises:
        PlatformUnsupportedError: If there is no such signal, or the runtime
            cannot install handlers for it.
    """
    if sys.platform in UNSUPPORTED_PLATFORMS:
        msg = f"Asynchronous signals are not delivered on {sys.platform}"
        raise PlatformUnsupportedError(msg, signal_name=SIGNAL_NAME, reason=sys.platform)
    signum = getattr(signal, SIGNAL_NAME, None)
    if signum is None:
        msg = f"{SIGNAL_NAME} is not available on {sys.platform}"
        raise PlatformUnsupportedError(msg, signal_name=SIGNAL_NAME, reason="no-signal")
    if not hasattr(signal, "signal") or not hasattr(os, "pipe"):
        msg = "Runtime cannot install signal handlers"
        raise PlatformUnsupportedError(msg, signal_name=SIGNAL_NAME, reason="no-handlers")
    return signum


def is_supported() -> bool:
    """Check whether resize notifications can be registered here."""
    try:
        resize_signal()
    except PlatformUnsupportedError:
        return False
    return True


def has_controlling_terminal() -> bool:
    """Check whether any standard stream is attached to a terminal."""
    for stream in (sys.stdin, sys.stdout, sys.stderr):
        try:
            if stream is not None and stream.isatty():
                return True
        except (AttributeError, ValueError, OSError):
            continue
    return False
