"""Exceptions raised when installing the resize trap."""

from __future__ import annotations


class ResizeNotifierError(Exception):
    """Base class for all resize notifier errors."""

    def __init__(
        self,
        message: str,
        *,
        signal_name: str | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.signal_name = signal_name
        self.reason = reason


class PlatformUnsupportedError(ResizeNotifierError):
    """The platform or runtime has no terminal resize notification.

    This is a capability gap: retrying will not help, the caller should fall
    back to a static layout.
    """


class RegistrationDeniedError(ResizeNotifierError):
    """The runtime refused to install the resize trap.

    Raised e.g. when registering from a thread other than the main thread,
    or when the OS rejects the handler.
    """
