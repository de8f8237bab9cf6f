"""
Live state for one running console.

A ConsoleState is built once by create_app() and stored on
app.extensions["tradedesk"]; route modules reach it through get_state()
so they all share the same notification center, catalog and settings.
shutdown() cancels every timer it owns and is safe to call twice.
"""
import logging
import random
from typing import Callable

from flask import current_app

from tradedesk.ambient import AmbientEventGenerator, default_tiers, seed_notifications
from tradedesk.catalog import Catalog
from tradedesk.models import ConsoleSettings
from tradedesk.notifications import NotificationCenter
from tradedesk.timers import ThreadTimerScheduler

log = logging.getLogger("tradedesk.state")

EXTENSION_KEY = "tradedesk"


class ConsoleState:

    def __init__(self, name: str = "tradedesk", scheduler=None,
                 settings: ConsoleSettings | None = None, seed: int | None = None,
                 tiers=None, seed_demo: bool = True):
        self.name = name
        self.settings = settings or ConsoleSettings()
        self.scheduler = scheduler or ThreadTimerScheduler()
        self.center = NotificationCenter(self.scheduler,
                                         default_toast_ms=self.settings.toast_duration_ms)
        self.catalog = Catalog(self.center, seed=seed)
        if tiers is None:
            tiers = default_tiers(self.center, random.Random(seed), catalog=self.catalog)
        self.ambient = AmbientEventGenerator(self.center, self.scheduler, tiers)
        self._cancel_ambient: Callable[[], None] | None = None
        self._shut_down = False
        if seed_demo:
            seed_notifications(self.center)

    def start_ambient(self) -> None:
        if self._shut_down or self._cancel_ambient is not None:
            return
        self._cancel_ambient = self.ambient.start()

    def stop_ambient(self) -> None:
        cancel, self._cancel_ambient = self._cancel_ambient, None
        if cancel is not None:
            cancel()

    @property
    def ambient_running(self) -> bool:
        return self._cancel_ambient is not None

    def apply_settings(self) -> None:
        """Push settings that have live effects into the running components."""
        self.center.toaster.default_duration_ms = self.settings.toast_duration_ms
        if self.settings.ambient_enabled:
            self.start_ambient()
        else:
            self.stop_ambient()

    def shutdown(self) -> None:
        if self._shut_down:
            return
        self._shut_down = True
        self.stop_ambient()
        self.center.close()
        close = getattr(self.scheduler, "close", None)
        if close is not None:
            close()
        log.info("Console %s shut down", self.name)


def get_state() -> ConsoleState:
    return current_app.extensions[EXTENSION_KEY]
