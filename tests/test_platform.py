"""Tests for platform probing."""

from __future__ import annotations

import signal
import sys

import pytest

from anywinch import PlatformUnsupportedError, is_supported
from anywinch.platform import resize_signal


@pytest.mark.skipif(not hasattr(signal, "SIGWINCH"), reason="No SIGWINCH")
def test_resize_signal_is_sigwinch():
    """Test that POSIX platforms report SIGWINCH."""
    assert resize_signal() == signal.SIGWINCH
    assert is_supported()


def test_missing_signal_is_unsupported(monkeypatch: pytest.MonkeyPatch):
    """Test a platform without a window-change signal."""
    monkeypatch.delattr(signal, "SIGWINCH", raising=False)

    with pytest.raises(PlatformUnsupportedError, match="SIGWINCH is not available") as exc:
        resize_signal()

    assert exc.value.signal_name == "SIGWINCH"
    assert exc.value.reason == "no-signal"
    assert not is_supported()


@pytest.mark.parametrize("platform", ["wasi", "emscripten"])
def test_sandboxed_runtime_is_unsupported(monkeypatch: pytest.MonkeyPatch, platform: str):
    """Test runtimes that never deliver asynchronous signals."""
    monkeypatch.setattr(sys, "platform", platform)

    with pytest.raises(PlatformUnsupportedError) as exc:
        resize_signal()

    assert exc.value.reason == platform
