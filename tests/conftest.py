from __future__ import annotations

import pytest

from tradedesk.app import create_app
from tradedesk.notifications import NotificationCenter
from tradedesk.state import ConsoleState
from tradedesk.timers import VirtualScheduler


@pytest.fixture
def scheduler():
    s = VirtualScheduler()
    yield s
    s.close()


@pytest.fixture
def center(scheduler):
    c = NotificationCenter(scheduler)
    yield c
    c.close()


@pytest.fixture
def state(scheduler):
    # No ambient tiers and no demo notifications: tests start from an empty bell.
    st = ConsoleState(name="test-console", scheduler=scheduler, seed=7, tiers=[], seed_demo=False)
    yield st
    st.shutdown()


@pytest.fixture
def app(state):
    flask_app = create_app(state, start_ambient=False)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
