"""Safe-context dispatchers for resize notifications."""

from __future__ import annotations

from .base import Dispatcher
from .checkpoint import CheckpointDispatcher
from .eventloop import EventLoopDispatcher
from .thread import ThreadDispatcher

__all__ = [
    "CheckpointDispatcher",
    "Dispatcher",
    "EventLoopDispatcher",
    "ThreadDispatcher",
]
