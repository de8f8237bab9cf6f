from __future__ import annotations

from tradedesk.ambient import AmbientTier, SequenceEventSource
from tradedesk.state import ConsoleState
from tradedesk.timers import VirtualScheduler


def _console(scheduler):
    tick = {"title": "Tick", "message": "ambient tick", "kind": "info"}
    tiers = [AmbientTier("a", 10, SequenceEventSource([tick] * 5))]
    return ConsoleState(name="shutdown-console", scheduler=scheduler, seed=1,
                        tiers=tiers, seed_demo=False)


def test_shutdown_cancels_every_timer():
    scheduler = VirtualScheduler()
    st = _console(scheduler)
    st.start_ambient()
    scheduler.advance(10)
    st.center.add_notification("Saved", "Settings saved", "success")
    st.center.show_toast("Heads up", "warning")
    assert st.ambient_running
    assert len(st.center.toasts) == 3
    assert scheduler.pending == 4

    st.shutdown()

    assert scheduler.pending == 0
    assert not st.ambient_running
    count = len(st.center.notifications)
    scheduler.advance(1000)
    assert len(st.center.notifications) == count
    assert st.center.toasts == []


def test_shutdown_twice_is_a_noop():
    scheduler = VirtualScheduler()
    st = _console(scheduler)
    st.start_ambient()
    st.shutdown()
    st.shutdown()

    assert scheduler.pending == 0
    assert st.center.add_notification("Late", "after shutdown", "info") is None


def test_ambient_cannot_restart_after_shutdown():
    scheduler = VirtualScheduler()
    st = _console(scheduler)
    st.shutdown()
    st.start_ambient()
    assert not st.ambient_running
    assert scheduler.pending == 0
