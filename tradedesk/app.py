"""
Tradedesk console entrypoint.

Reads runtime config from the environment, builds the ConsoleState that
every route shares, registers the Flask blueprints and starts the ambient
activity generators. The state is torn down (all timers cancelled) when
the process exits.
"""
import atexit
import logging
import os

from flask import Flask

from tradedesk.models import DEFAULT_TOAST_MS, ConsoleSettings
from tradedesk.routes import catalog as catalog_bp
from tradedesk.routes import notifications as notifications_bp
from tradedesk.routes import settings as settings_bp
from tradedesk.routes import ui as ui_bp
from tradedesk.routes.ws import sock
from tradedesk.state import EXTENSION_KEY, ConsoleState

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"

log = logging.getLogger("tradedesk.app")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring %s=%r (not an integer)", name, raw)
        return default


def load_settings() -> ConsoleSettings:
    """ConsoleSettings seeded from TRADEDESK_* environment variables."""
    level = os.environ.get("TRADEDESK_LOG_LEVEL", "INFO").strip().upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = "INFO"
    toast_ms = _env_int("TRADEDESK_TOAST_MS", DEFAULT_TOAST_MS)
    return ConsoleSettings(
        log_level=level,
        ambient_enabled=_env_flag("TRADEDESK_AMBIENT", True),
        toast_duration_ms=toast_ms if toast_ms and toast_ms > 0 else DEFAULT_TOAST_MS,
    )


def create_app(state: ConsoleState | None = None, start_ambient: bool | None = None) -> Flask:
    """
    Build the Flask app around a ConsoleState.

    Tests pass their own state (typically on a VirtualScheduler) and
    start_ambient=False; otherwise everything comes from the environment.
    """
    if state is None:
        state = ConsoleState(
            name=os.environ.get("TRADEDESK_NAME", "tradedesk"),
            settings=load_settings(),
            seed=_env_int("TRADEDESK_SEED", None),
        )

    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = state

    app.register_blueprint(ui_bp.bp)
    app.register_blueprint(notifications_bp.bp)
    app.register_blueprint(catalog_bp.bp)
    app.register_blueprint(settings_bp.bp)
    sock.init_app(app)

    if start_ambient is None:
        start_ambient = state.settings.ambient_enabled
    if start_ambient:
        state.start_ambient()

    log.info("Console %s ready (%d notification(s), ambient=%s)",
             state.name, len(state.center.notifications), state.ambient_running)
    return app


def main():
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    app = create_app()
    state = app.extensions[EXTENSION_KEY]
    logging.getLogger().setLevel(getattr(logging, state.settings.log_level, logging.INFO))
    atexit.register(state.shutdown)

    host = os.environ.get("TRADEDESK_HOST", "0.0.0.0")
    port = _env_int("TRADEDESK_PORT", 8000)
    log.info("Starting console %s on %s:%d", state.name, host, port)
    app.run(host=host, port=port, threaded=True)


if __name__ == "__main__":
    main()
