"""Terminal resize notifier.

Usage:
    def on_resize() -> None:
        renderer.invalidate_layout()

    subscription = anywinch.register(on_resize)
    ...
    subscription.cancel()

The notifier is a two-phase bridge. The handler installed with
`signal.signal` only writes a byte into a pipe (see `anywinch.trap`); a
dispatcher picks that up on a safe context and runs the callback there.
"""

from __future__ import annotations

from dataclasses import dataclass
import inspect
import logging
import signal
import threading
from typing import TYPE_CHECKING, Any, Literal, Self

from anywinch.config import NotifierConfig
from anywinch.dispatchers import (
    CheckpointDispatcher,
    Dispatcher,
    EventLoopDispatcher,
    ThreadDispatcher,
)
from anywinch.errors import RegistrationDeniedError
from anywinch.platform import SIGNAL_NAME, has_controlling_terminal, resize_signal
from anywinch.trap import WakeupPipe


if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable
    from types import TracebackType


logger = logging.getLogger(__name__)

type ResizeCallback = Callable[[], Any]
type NotifierState = Literal["unregistered", "registered"]
type Handler = Callable[[int, Any], Any] | int | None


@dataclass(frozen=True)
class NotifierStats:
    """Counters describing notifier activity."""

    received: int = 0
    """Notifications seen by the signal trap."""
    invocations: int = 0
    """Times the callback was started."""
    failures: int = 0
    """Callback runs that raised."""
    write_errors: int = 0
    """Notifications the trap could not record."""

    def __add__(self, other: NotifierStats) -> NotifierStats:
        return NotifierStats(
            received=self.received + other.received,
            invocations=self.invocations + other.invocations,
            failures=self.failures + other.failures,
            write_errors=self.write_errors + other.write_errors,
        )


class Subscription:
    """Handle for a registered resize callback."""

    __slots__ = ("_notifier", "callback")

    def __init__(self, notifier: ResizeNotifier, callback: ResizeCallback) -> None:
        self._notifier = notifier
        self.callback = callback

    @property
    def active(self) -> bool:
        """Whether this is still the notifier's current callback."""
        return self._notifier.current is self

    def cancel(self) -> bool:
        """Unregister the callback, unless it has already been replaced."""
        return self._notifier.unregister(self)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cancel()

    def __repr__(self) -> str:
        return f"Subscription(callback={self.callback!r}, active={self.active})"


class DispatchTable:
    """Process-wide table with one installed notifier per signal.

    Installing a notifier for a signal that another notifier already owns
    displaces the previous owner, which the caller then tears down, so
    installations replace each other instead of stacking.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._owners: dict[int, ResizeNotifier] = {}

    def owner(self, signum: int) -> ResizeNotifier | None:
        return self._owners.get(signum)

    def claim(self, signum: int, notifier: ResizeNotifier) -> ResizeNotifier | None:
        """Make `notifier` the owner of `signum`, returning the displaced owner."""
        with self.lock:
            current = self._owners.get(signum)
            self._owners[signum] = notifier
            if current is None or current is notifier:
                return None
            logger.debug("Replacing resize notifier %r with %r", current, notifier)
            return current

    def release(self, signum: int, notifier: ResizeNotifier) -> None:
        with self.lock:
            if self._owners.get(signum) is notifier:
                del self._owners[signum]


dispatch_table = DispatchTable()


class ResizeNotifier:
    """Run a callback whenever the controlling terminal is resized.

    The notifier holds a single callback slot. Registering again replaces
    the callback; compose fan-out inside the callback if several listeners
    are needed.

    Args:
        config: Notifier configuration.
        loop: Event loop to dispatch on (asyncio mode only). Defaults to the
            loop running at registration time.
        **overrides: Config fields overriding `config`.
    """

    def __init__(
        self,
        config: NotifierConfig | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        **overrides: Any,
    ) -> None:
        if config is None:
            config = NotifierConfig(**overrides)
        elif overrides:
            config = NotifierConfig.model_validate({**config.model_dump(), **overrides})
        self.config = config
        self.loop = loop
        self._current: Subscription | None = None
        self._dispatcher: Dispatcher | None = None
        self._signum: int | None = None
        self._previous: Handler = None
        self._retired = NotifierStats()

    @property
    def current(self) -> Subscription | None:
        return self._current

    @property
    def state(self) -> NotifierState:
        return "registered" if self._current is not None else "unregistered"

    @property
    def is_registered(self) -> bool:
        return self._current is not None

    @property
    def installed(self) -> bool:
        """Whether the signal trap is currently installed."""
        return self._dispatcher is not None

    @property
    def stats(self) -> NotifierStats:
        dispatcher = self._dispatcher
        if dispatcher is None:
            return self._retired
        return self._retired + _stats_of(dispatcher)

    def register(self, callback: ResizeCallback) -> Subscription:
        """Install `callback` as the action to run on every terminal resize.

        Replaces any previously registered callback. The callback runs on the
        configured safe context, never inside the signal handler, and may be
        invoked any number of times.

        Raises:
            TypeError: If `callback` is not callable, or is a coroutine
                function outside asyncio mode.
            PlatformUnsupportedError: If this platform has no resize signal.
            RegistrationDeniedError: If the runtime refuses to install the
                handler, e.g. when called off the main thread.
        """
        if not callable(callback):
            msg = f"Resize callback must be callable, got {type(callback).__name__}"
            raise TypeError(msg)
        if self.config.dispatch != "asyncio" and inspect.iscoroutinefunction(callback):
            msg = "Coroutine callbacks require dispatch='asyncio'"
            raise TypeError(msg)

        subscription = Subscription(self, callback)
        displaced: list[tuple[ResizeNotifier, Dispatcher]] = []
        try:
            with dispatch_table.lock:
                previous, self._current = self._current, subscription
                if self._dispatcher is None:
                    try:
                        self._install(displaced)
                    except BaseException:
                        self._current = previous
                        raise
        finally:
            # Stopping may join a worker whose callback needs the table lock.
            for owner, dispatcher in displaced:
                owner._finish(dispatcher)
        if previous is not None:
            logger.debug("Replaced resize callback %r with %r", previous.callback, callback)
        return subscription

    def unregister(self, subscription: Subscription | None = None) -> bool:
        """Remove the current callback.

        Args:
            subscription: Only unregister if this is still the current
                subscription.

        Returns:
            True if a callback was removed.

        Off the main thread only the callback slot is cleared; the inert
        trap stays installed until `close()` or `unregister()` runs on the
        main thread.
        """
        with dispatch_table.lock:
            current = self._current
            if current is None or (subscription is not None and subscription is not current):
                return False
            self._current = None
            if not _on_main_thread():
                logger.debug("Unregistered off the main thread; keeping trap installed")
                return True
            dispatcher = self._detach()
        if dispatcher is not None:
            self._finish(dispatcher)
        return True

    def close(self) -> None:
        """Unregister and uninstall the trap. Must run on the main thread."""
        with dispatch_table.lock:
            self._current = None
            if self._dispatcher is None:
                return
            if not _on_main_thread():
                msg = "Resize trap can only be uninstalled from the main thread"
                raise RuntimeError(msg)
            dispatcher = self._detach()
        if dispatcher is not None:
            self._finish(dispatcher)

    def notify(self) -> bool:
        """Simulate a resize notification through the signal trap.

        Returns:
            False if no trap is installed.
        """
        dispatcher = self._dispatcher
        if dispatcher is None or self._signum is None:
            return False
        dispatcher.pipe.trap(self._signum, None)
        return True

    def poll(self) -> bool:
        """Run the callback if a notification is pending (checkpoint mode).

        Returns:
            True if the callback ran.
        """
        if self.config.dispatch != "checkpoint":
            msg = f"poll() requires dispatch='checkpoint', not {self.config.dispatch!r}"
            raise RuntimeError(msg)
        dispatcher = self._dispatcher
        if not isinstance(dispatcher, CheckpointDispatcher):
            return False
        return dispatcher.poll()

    def _invoke(self) -> Any:
        subscription = self._current
        if subscription is None:
            return None
        return subscription.callback()

    def _create_dispatcher(self, pipe: WakeupPipe) -> Dispatcher:
        match self.config.dispatch:
            case "thread":
                return ThreadDispatcher(
                    pipe,
                    self._invoke,
                    name=self.config.thread_name,
                    join_timeout=self.config.join_timeout,
                )
            case "asyncio":
                return EventLoopDispatcher(pipe, self._invoke, loop=self.loop)
            case "checkpoint":
                return CheckpointDispatcher(
                    pipe, self._invoke, raise_exceptions=self.config.raise_exceptions
                )

    def _install(self, displaced: list[tuple[ResizeNotifier, Dispatcher]]) -> None:
        signum = resize_signal()
        if not _on_main_thread():
            msg = f"{SIGNAL_NAME} handlers can only be installed from the main thread"
            raise RegistrationDeniedError(
                msg, signal_name=SIGNAL_NAME, reason="not-main-thread"
            )
        if (owner := dispatch_table.claim(signum, self)) is not None:
            owner._current = None
            if (detached := owner._detach()) is not None:
                displaced.append((owner, detached))
        try:
            pipe = WakeupPipe(read_chunk=self.config.read_chunk)
        except OSError as e:
            dispatch_table.release(signum, self)
            msg = f"Could not create wakeup pipe: {e}"
            raise RegistrationDeniedError(msg, signal_name=SIGNAL_NAME, reason="pipe") from e
        try:
            previous = signal.signal(signum, pipe.trap)
        except (ValueError, OSError) as e:
            pipe.close()
            dispatch_table.release(signum, self)
            msg = f"Could not install {SIGNAL_NAME} handler: {e}"
            raise RegistrationDeniedError(msg, signal_name=SIGNAL_NAME, reason=str(e)) from e

        dispatcher = self._create_dispatcher(pipe)
        try:
            dispatcher.start()
        except BaseException:
            signal.signal(signum, _restorable(previous))
            pipe.close()
            dispatch_table.release(signum, self)
            raise

        if self.config.warn_on_replace and previous not in (signal.SIG_DFL, signal.SIG_IGN):
            logger.warning(
                "Replaced existing %s handler %s",
                SIGNAL_NAME,
                "(non-Python)" if previous is None else repr(previous),
            )
        self._signum = signum
        self._previous = previous
        self._dispatcher = dispatcher
        logger.debug("Installed %s trap (dispatch=%s)", SIGNAL_NAME, self.config.dispatch)
        if not has_controlling_terminal():
            logger.debug("No controlling terminal; resize callback will not fire")

    def _detach(self) -> Dispatcher | None:
        """Uninstall the trap and hand back the dispatcher still to be stopped.

        Runs under the table lock; `_finish` must follow once it is released.
        """
        dispatcher, self._dispatcher = self._dispatcher, None
        signum, self._signum = self._signum, None
        if dispatcher is None or signum is None:
            return None
        restored = _restorable(self._previous) if self.config.restore_previous else signal.SIG_DFL
        self._previous = None
        signal.signal(signum, restored)
        dispatch_table.release(signum, self)
        return dispatcher

    def _finish(self, dispatcher: Dispatcher) -> None:
        dispatcher.stop()
        self._retired += _stats_of(dispatcher)
        logger.debug("Uninstalled %s trap", SIGNAL_NAME)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"ResizeNotifier(dispatch={self.config.dispatch!r}, "
            f"state={self.state!r}, installed={self.installed})"
        )


def _on_main_thread() -> bool:
    return threading.current_thread() is threading.main_thread()


def _restorable(handler: Handler) -> Handler:
    # A handler installed outside Python reads back as None and cannot be reinstalled.
    return signal.SIG_DFL if handler is None else handler


def _stats_of(dispatcher: Dispatcher) -> NotifierStats:
    return NotifierStats(
        received=dispatcher.pipe.received,
        invocations=dispatcher.invocations,
        failures=dispatcher.failures,
        write_errors=dispatcher.pipe.write_errors,
    )


default_notifier = ResizeNotifier()


def register(callback: ResizeCallback) -> Subscription:
    """Register `callback` with the process-wide default notifier."""
    return default_notifier.register(callback)


def unregister(subscription: Subscription | None = None) -> bool:
    """Unregister the callback of the process-wide default notifier."""
    return default_notifier.unregister(subscription)


def notify() -> bool:
    """Simulate a resize notification on the default notifier."""
    return default_notifier.notify()
