import logging

from flask import Blueprint, request, jsonify

from tradedesk.state import get_state

log = logging.getLogger("tradedesk.routes.settings")

bp = Blueprint("settings", __name__)

LANGUAGES = ("en", "ru", "uz")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_SAVED_TITLES = {
    "en": "Settings saved successfully",
    "ru": "Настройки успешно сохранены",
    "uz": "Sozlamalar muvaffaqiyatli saqlandi",
}


def _apply_log_level(level_name: str):
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.getLogger().setLevel(level)


@bp.route("/settings")
def get_settings():
    state = get_state()
    out = state.settings.to_dict()
    out["ambient_running"] = state.ambient_running
    return jsonify(out)


@bp.route("/settings", methods=["POST"])
def update_settings():
    state = get_state()
    data = request.json or {}
    s = state.settings
    # validate everything first; a rejected request changes nothing
    changes = {}

    if "language" in data:
        if data["language"] not in LANGUAGES:
            return jsonify({"error": f"language must be one of {LANGUAGES}"}), 400
        changes["language"] = data["language"]

    if "log_level" in data:
        level = str(data["log_level"]).upper()
        if level not in LOG_LEVELS:
            return jsonify({"error": "log_level must be DEBUG, INFO, WARNING, or ERROR"}), 400
        changes["log_level"] = level

    if "toast_duration_ms" in data:
        try:
            ms = int(data["toast_duration_ms"])
        except (ValueError, TypeError):
            return jsonify({"error": "toast_duration_ms must be an integer"}), 400
        if ms <= 0:
            return jsonify({"error": "toast_duration_ms must be positive"}), 400
        changes["toast_duration_ms"] = ms

    if "ambient_enabled" in data:
        if not isinstance(data["ambient_enabled"], bool):
            return jsonify({"error": "ambient_enabled must be true or false"}), 400
        changes["ambient_enabled"] = data["ambient_enabled"]

    for key, value in changes.items():
        setattr(s, key, value)
    if "log_level" in changes:
        _apply_log_level(s.log_level)
    state.apply_settings()
    log.info("Settings updated: %s", s.to_dict())
    state.center.add_notification(
        title=_SAVED_TITLES[s.language],
        message="Your preferences have been applied",
        kind="success",
    )
    return jsonify(s.to_dict())
