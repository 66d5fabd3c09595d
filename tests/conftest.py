"""Shared fixtures for resize notifier tests."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import anyio
import pytest

from anywinch import ResizeNotifier, default_notifier


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator


def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


async def _wait_for_async(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await anyio.sleep(0.01)
    return predicate()


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Poll a predicate until it holds or the timeout expires."""
    return _wait_for


@pytest.fixture
def wait_for_async() -> Callable[..., Awaitable[bool]]:
    """Async variant of `wait_for` that yields to the event loop."""
    return _wait_for_async


@pytest.fixture
def notifier() -> Iterator[ResizeNotifier]:
    """Thread-dispatched notifier that is always uninstalled afterwards."""
    notifier = ResizeNotifier(warn_on_replace=False)
    yield notifier
    notifier.close()


@pytest.fixture
def checkpoint_notifier() -> Iterator[ResizeNotifier]:
    """Notifier dispatching only on explicit `poll()` calls."""
    notifier = ResizeNotifier(dispatch="checkpoint", warn_on_replace=False)
    yield notifier
    notifier.close()


@pytest.fixture(autouse=True)
def _close_default_notifier() -> Iterator[None]:
    yield
    default_notifier.close()
