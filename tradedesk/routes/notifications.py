import logging
from datetime import datetime, timezone

from flask import Blueprint, request, jsonify

from tradedesk.models import InvalidNotification
from tradedesk.state import get_state

log = logging.getLogger("tradedesk.routes.notifications")

bp = Blueprint("notifications", __name__)

DROPDOWN_LIMIT = 10

_UNITS = (
    (31536000, "years"),
    (2592000, "months"),
    (86400, "days"),
    (3600, "hours"),
    (60, "minutes"),
)


def time_ago(ts: datetime, now: datetime | None = None) -> str:
    """Relative age as shown in the bell dropdown, e.g. "2 hours ago"."""
    now = now or datetime.now(timezone.utc)
    seconds = max(0, int((now - ts).total_seconds()))
    for size, unit in _UNITS:
        if seconds / size > 1:
            return f"{seconds // size} {unit} ago"
    return f"{seconds} seconds ago"


def _entry(n, now):
    d = n.to_dict()
    d["time_ago"] = time_ago(n.created_at, now)
    return d


@bp.route("/notifications")
def list_notifications():
    center = get_state().center
    items = center.notifications
    limit = request.args.get("limit", type=int)
    shown = items[:max(0, limit)] if limit is not None else items
    now = datetime.now(timezone.utc)
    return jsonify({
        "notifications": [_entry(n, now) for n in shown],
        "unread_count": center.unread_count,
        "more": len(items) - len(shown),
    })


@bp.route("/notifications", methods=["POST"])
def create_notification():
    data = request.json or {}
    try:
        n = get_state().center.add({
            k: data[k] for k in ("title", "message", "kind", "auto_close", "duration") if k in data
        })
    except InvalidNotification as exc:
        return jsonify({"error": str(exc)}), 400
    if n is None:
        return jsonify({"error": "console is shutting down"}), 503
    return jsonify(n.to_dict()), 201


@bp.route("/notifications/<notif_id>/read", methods=["POST"])
def mark_read(notif_id):
    get_state().center.mark_as_read(notif_id)
    return jsonify({"ok": True})


@bp.route("/notifications/read-all", methods=["POST"])
def mark_all_read():
    center = get_state().center
    center.mark_all_as_read()
    return jsonify({"ok": True, "unread_count": center.unread_count})


@bp.route("/notifications/<notif_id>", methods=["DELETE"])
def delete_notification(notif_id):
    get_state().center.remove_notification(notif_id)
    return jsonify({"ok": True})


@bp.route("/notifications", methods=["DELETE"])
def clear_notifications():
    get_state().center.clear_all_notifications()
    return jsonify({"ok": True})


@bp.route("/notifications/<notif_id>/action", methods=["POST"])
def run_action(notif_id):
    center = get_state().center
    n = center.get(notif_id)
    if n is None:
        return jsonify({"error": "not found"}), 404
    if n.action is None:
        return jsonify({"error": "notification has no action"}), 400
    ok = center.invoke_action(notif_id)
    return jsonify({"ok": ok, "unread_count": center.unread_count})


@bp.route("/toasts")
def list_toasts():
    return jsonify([t.to_dict() for t in get_state().center.toasts])


@bp.route("/toasts", methods=["POST"])
def create_toast():
    data = request.json or {}
    try:
        toast = get_state().center.show_toast(
            data.get("message"), data.get("kind", "info"), data.get("duration"))
    except InvalidNotification as exc:
        return jsonify({"error": str(exc)}), 400
    if toast is None:
        return jsonify({"error": "console is shutting down"}), 503
    return jsonify(toast.to_dict()), 201


@bp.route("/toasts/<toast_id>", methods=["DELETE"])
def dismiss_toast(toast_id):
    get_state().center.dismiss_toast(toast_id)
    return jsonify({"ok": True})
