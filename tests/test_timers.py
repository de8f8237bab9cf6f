from __future__ import annotations

import threading

import pytest

from tradedesk.timers import ThreadTimerScheduler, VirtualScheduler


def test_virtual_fires_in_due_order():
    s = VirtualScheduler()
    fired = []
    s.call_later(3, lambda: fired.append("c"))
    s.call_later(1, lambda: fired.append("a"))
    s.call_later(2, lambda: fired.append("b"))

    assert s.advance(2.5) == 2
    assert fired == ["a", "b"]
    assert s.now == 2.5
    s.advance(1)
    assert fired == ["a", "b", "c"]


def test_virtual_ties_fire_in_scheduling_order():
    s = VirtualScheduler()
    fired = []
    for name in "xyz":
        s.call_later(1, lambda name=name: fired.append(name))
    s.advance(1)
    assert fired == ["x", "y", "z"]


def test_virtual_cancel_is_idempotent():
    s = VirtualScheduler()
    fired = []
    handle = s.call_later(1, lambda: fired.append(1))
    handle.cancel()
    handle.cancel()
    assert handle.cancelled
    assert s.pending == 0
    s.advance(5)
    assert fired == []


def test_virtual_runs_callbacks_scheduled_while_advancing():
    s = VirtualScheduler()
    fired = []

    def _first():
        fired.append(s.now)
        s.call_later(1, lambda: fired.append(s.now))

    s.call_later(1, _first)
    s.advance(5)
    assert fired == [1, 2]


def test_virtual_callback_error_does_not_stop_the_clock():
    s = VirtualScheduler()
    fired = []

    def _boom():
        raise RuntimeError("bad callback")

    s.call_later(1, _boom)
    s.call_later(2, lambda: fired.append("after"))
    s.advance(3)
    assert fired == ["after"]


def test_virtual_rejects_going_backwards():
    with pytest.raises(ValueError):
        VirtualScheduler().advance(-1)


def test_virtual_close_drops_everything():
    s = VirtualScheduler()
    s.call_later(1, lambda: None)
    s.close()
    assert s.pending == 0
    late = s.call_later(1, lambda: None)
    assert late.cancelled
    assert s.advance(2) == 0


def test_thread_scheduler_fires():
    s = ThreadTimerScheduler()
    done = threading.Event()
    s.call_later(0.01, done.set)
    assert done.wait(2)
    s.close()


def test_thread_scheduler_cancel_prevents_firing():
    s = ThreadTimerScheduler()
    fired = threading.Event()
    handle = s.call_later(0.2, fired.set)
    handle.cancel()
    assert s.pending == 0
    assert not fired.wait(0.4)
    s.close()


def test_thread_scheduler_close_cancels_outstanding():
    s = ThreadTimerScheduler()
    fired = threading.Event()
    s.call_later(0.2, fired.set)
    s.call_later(0.3, fired.set)
    s.close()
    assert s.pending == 0
    assert not fired.wait(0.5)
    assert s.call_later(0.01, fired.set).cancelled
