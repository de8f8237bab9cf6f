"""
WebSocket push stream for the notification bell and toast stack.

The dashboard connects to /ws/notifications and receives one JSON frame
per bus event:

  {"event": "notification.added", "payload": {...}, "unread_count": 3}

The first frame is a "snapshot" carrying the current notifications and
toasts so the client never has to poll. Frames are queued by the bus
listener and written from the handler thread, since simple_websocket
sockets must only be used from the thread that owns them.
"""
import json
import logging
import queue

from flask_sock import Sock
from simple_websocket import ConnectionClosed

from tradedesk.state import get_state

log = logging.getLogger("tradedesk.routes.ws")

sock = Sock()   # bound to the Flask app in create_app()

_POLL_SECONDS = 1.0


def _frame(event: str, payload, unread_count: int) -> str:
    return json.dumps({"event": event, "payload": payload, "unread_count": unread_count})


@sock.route("/ws/notifications")
def notifications_ws(ws):
    center = get_state().center
    outbox: queue.Queue = queue.Queue()

    def _listener(event, payload):
        outbox.put((event, payload))

    unsubscribe = center.subscribe(_listener)
    log.info("Notification stream opened")
    try:
        ws.send(_frame("snapshot", {
            "notifications": [n.to_dict() for n in center.notifications],
            "toasts": [t.to_dict() for t in center.toasts],
        }, center.unread_count))
        while ws.connected and not center.closed:
            try:
                event, payload = outbox.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            ws.send(_frame(event, payload, center.unread_count))
    except ConnectionClosed as exc:
        log.debug("Notification stream ended: %s", exc)
    finally:
        unsubscribe()
        log.info("Notification stream closed")
