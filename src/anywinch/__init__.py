"""AnyWinch: run callbacks safely when the terminal is resized."""

__version__ = "0.1.0"

from anywinch.config import NotifierConfig
from anywinch.errors import (
    PlatformUnsupportedError,
    RegistrationDeniedError,
    ResizeNotifierError,
)
from anywinch.notifier import (
    NotifierStats,
    ResizeNotifier,
    Subscription,
    default_notifier,
    notify,
    register,
    unregister,
)
from anywinch.platform import is_supported

__all__ = [
    # Notifier
    "NotifierConfig",
    "NotifierStats",
    "ResizeNotifier",
    "Subscription",
    "default_notifier",
    "is_supported",
    "notify",
    "register",
    "unregister",
    # Errors
    "PlatformUnsupportedError",
    "RegistrationDeniedError",
    "ResizeNotifierError",
]
