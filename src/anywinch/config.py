"""Resize notifier configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


DispatchMode = Literal["thread", "asyncio", "checkpoint"]


class NotifierConfig(BaseModel):
    """Configuration for a ResizeNotifier."""

    dispatch: DispatchMode = Field(
        default="thread",
        title="Dispatch Mode",
        examples=["thread", "asyncio", "checkpoint"],
    )
    """Where the callback runs: a worker thread, an asyncio loop, or `poll()` calls."""

    thread_name: str = Field(
        default="anywinch-dispatch",
        min_length=1,
        title="Worker Thread Name",
    )
    """Name of the dispatch thread (thread mode only)."""

    join_timeout: float = Field(
        default=1.0,
        gt=0.0,
        title="Join Timeout",
        examples=[0.5, 5.0],
    )
    """Seconds to wait for the dispatch thread on teardown."""

    read_chunk: int = Field(default=512, ge=1, title="Read Chunk Size")
    """Maximum number of wakeup bytes consumed per read."""

    restore_previous: bool = Field(default=True, title="Restore Previous Handler")
    """Reinstall the handler that was active before registration on teardown."""

    warn_on_replace: bool = Field(default=True, title="Warn On Replace")
    """Log a warning when registration replaces a foreign Python handler."""

    raise_exceptions: bool = Field(default=False, title="Raise Exceptions")
    """Re-raise callback exceptions from `poll()` (checkpoint mode only)."""

    model_config = ConfigDict(use_attribute_docstrings=True, extra="forbid")
